# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scheduled_tx.api.v1.endpoints import scheduled_txs as scheduled_txs_endpoints
from scheduled_tx.db.session import Base
from scheduled_tx.main import app as fastapi_app
from scheduled_tx.services.crypto import CryptoService
from scheduled_tx.services.module import ScheduledTxModule
from scheduled_tx.services.registry import InMemoryPermitRegistry
from scheduled_tx.services.typed_data import DomainContext, Permit, hash_permit
from scheduled_tx.services.vault import InMemoryVault, Ledger, VaultDirectory

TEST_DB_URL = "sqlite://"

CHAIN_ID = 31337
MODULE_ADDRESS = "0x9999999999999999999999999999999999999999"
VAULT_ADDRESS = "0x1111111111111111111111111111111111111111"
TARGET_ADDRESS = "0x2222222222222222222222222222222222222222"
OTHER_VAULT_ADDRESS = "0x3333333333333333333333333333333333333333"

START = 1_700_000_000
DAY = 86_400
VAULT_FUNDS = 10**21


class FrozenClock:
    """Clock that only moves when a test says so."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def sign_permit(domain: DomainContext, permit: Permit, *keys: SigningKey) -> bytes:
    """Return a packed owner signature blob over the permit's digest."""
    digest = hash_permit(domain, permit)
    return CryptoService.pack_signatures(
        (key.verify_key.encode(), key.sign(digest).signature) for key in keys
    )


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[Callable[[], Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture()
def domain() -> DomainContext:
    return DomainContext(chain_id=CHAIN_ID, verifying_contract=MODULE_ADDRESS)


@pytest.fixture()
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture()
def owner_key() -> SigningKey:
    """Signing key of the single owner of the default vault."""
    return SigningKey.generate()


@pytest.fixture()
def outsider_key() -> SigningKey:
    """Signing key that no vault recognizes."""
    return SigningKey.generate()


@pytest.fixture()
def vault(ledger: Ledger, owner_key: SigningKey) -> InMemoryVault:
    """1-of-1 vault with the module enabled and funds on the ledger."""
    vault = InMemoryVault(
        VAULT_ADDRESS,
        owners=[owner_key.verify_key.encode()],
        threshold=1,
        ledger=ledger,
    )
    vault.enable_module(MODULE_ADDRESS)
    ledger.credit(VAULT_ADDRESS, VAULT_FUNDS)
    return vault


@pytest.fixture()
def vaults(vault: InMemoryVault) -> VaultDirectory:
    directory = VaultDirectory()
    directory.register(vault)
    return directory


@pytest.fixture()
def registry() -> InMemoryPermitRegistry:
    return InMemoryPermitRegistry()


@pytest.fixture()
def module(
    domain: DomainContext,
    registry: InMemoryPermitRegistry,
    vaults: VaultDirectory,
    clock: FrozenClock,
) -> ScheduledTxModule:
    return ScheduledTxModule(domain=domain, registry=registry, vaults=vaults, clock=clock)


@pytest.fixture()
def make_permit() -> Callable[..., Permit]:
    """Build a one-day plain transfer permit, overriding any field."""

    def _make(**overrides: Any) -> Permit:
        fields: dict[str, Any] = {
            "account": VAULT_ADDRESS,
            "target": TARGET_ADDRESS,
            "amount": 10**18,
            "payload": b"",
            "nonce": 1,
            "not_before": START,
            "not_after": START + DAY,
        }
        fields.update(overrides)
        return Permit(**fields)

    return _make


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, module: ScheduledTxModule) -> Iterator[TestClient]:
    """Test client whose scheduled tx module is the per-test ``module`` fixture."""
    app.dependency_overrides[scheduled_txs_endpoints.get_module_dep] = lambda: module
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(scheduled_txs_endpoints.get_module_dep, None)

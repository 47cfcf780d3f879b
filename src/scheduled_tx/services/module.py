"""Scheduled transaction module: the public entry point for relayers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from eth_utils import to_checksum_address

from scheduled_tx.core.clock import Clock, unix_time
from scheduled_tx.core.settings import settings
from scheduled_tx.services.dispatcher import ExecutionDispatcher
from scheduled_tx.services.registry import PermitRegistry, get_permit_registry
from scheduled_tx.services.typed_data import DomainContext, Permit, hash_permit
from scheduled_tx.services.validator import PermitValidator
from scheduled_tx.services.vault import VaultLookup, get_vault_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionReceipt:
    """Outcome of a successful execution."""

    account: str
    nonce: int
    transaction_hash: bytes
    executed_at: int


class ScheduledTxModule:
    """Executes pre-signed vault transactions inside their time window, once.

    Anyone holding a signed permit may call ``execute``. The vault's own
    owners and threshold decide whether the signatures are good enough.
    """

    def __init__(
        self,
        domain: DomainContext,
        registry: PermitRegistry,
        vaults: VaultLookup,
        clock: Clock = unix_time,
    ) -> None:
        self.domain = domain
        self.registry = registry
        self.clock = clock
        self.validator = PermitValidator(domain, registry, vaults)
        self.dispatcher = ExecutionDispatcher(domain.verifying_contract)

    @property
    def address(self) -> str:
        return self.domain.verifying_contract

    @property
    def domain_separator(self) -> bytes:
        return self.domain.separator

    def execute(
        self,
        account: str,
        target: str,
        amount: int,
        payload: bytes,
        nonce: int,
        not_before: int,
        not_after: int,
        signatures: bytes,
    ) -> ExecutionReceipt:
        """Execute a scheduled transaction on behalf of ``account``.

        Raises:
            TransactionExpiredError: the window has closed.
            TransactionTooEarlyError: the window has not opened yet.
            TransactionAlreadyExecutedError: the nonce was consumed before.
            InvalidAuthorizationError: the vault did not approve the signatures.
            ExecutionFailedError: the vault ran the call and it failed.
        """
        permit = Permit(
            account=account,
            target=target,
            amount=amount,
            payload=payload,
            nonce=nonce,
            not_before=not_before,
            not_after=not_after,
        )
        return self.execute_permit(permit, signatures)

    def execute_permit(self, permit: Permit, signatures: bytes) -> ExecutionReceipt:
        """Execute an already constructed permit."""
        now = self.clock()
        vault = self.validator.validate(permit, signatures, now)
        self.dispatcher.dispatch(vault, permit)
        tx_hash = hash_permit(self.domain, permit)
        logger.info(
            "Executed scheduled tx account=%s nonce=%d target=%s value=%d hash=0x%s",
            permit.account,
            permit.nonce,
            permit.target,
            permit.amount,
            tx_hash.hex(),
        )
        return ExecutionReceipt(
            account=permit.account,
            nonce=permit.nonce,
            transaction_hash=tx_hash,
            executed_at=now,
        )

    def get_transaction_hash(
        self,
        target: str,
        amount: int,
        payload: bytes,
        nonce: int,
        not_before: int,
        not_after: int,
    ) -> bytes:
        """Return the digest vault owners sign for these parameters."""
        # The account is not part of the signed struct.
        permit = Permit(
            account=self.address,
            target=target,
            amount=amount,
            payload=payload,
            nonce=nonce,
            not_before=not_before,
            not_after=not_after,
        )
        return hash_permit(self.domain, permit)

    def is_nonce_used(self, account: str, nonce: int) -> bool:
        return self.registry.is_consumed(to_checksum_address(account), nonce)


@lru_cache(maxsize=1)
def get_scheduled_tx_module() -> ScheduledTxModule:
    """Return the module wired from settings."""
    return ScheduledTxModule(
        domain=settings.domain_context,
        registry=get_permit_registry(),
        vaults=get_vault_directory(),
    )

"""Permit registry: the set of consumed nonces per vault account.

The registry is the only mutable state behind scheduled execution. Callers
get a read-only ``is_consumed`` and an atomic ``try_consume``; there is no
separate "mark" operation, so a check and its mark can never be split across
a call boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import lru_cache
from threading import Lock
from typing import Protocol

import redis
from eth_utils import to_checksum_address
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scheduled_tx.core.settings import settings
from scheduled_tx.db.session import SessionLocal
from scheduled_tx.models import ConsumedNonce

logger = logging.getLogger(__name__)


class _KeyLock:
    """A lock plus the number of attempts holding or awaiting it."""

    __slots__ = ("lock", "waiters")

    def __init__(self) -> None:
        self.lock = Lock()
        self.waiters = 0


def _nonce_hex(nonce: int) -> str:
    return f"{nonce:064x}"


class PermitRegistry(Protocol):
    """Keyed store of consumed ``(account, nonce)`` pairs."""

    def is_consumed(self, account: str, nonce: int) -> bool: ...

    def try_consume(self, account: str, nonce: int) -> bool: ...


class InMemoryPermitRegistry:
    """Process-local registry backed by ``dict[account, set[nonce]]``.

    Check-and-mark runs under a lock owned by the ``(account, nonce)`` key
    alone, so attempts on different nonces never wait on each other. A key's
    lock lives only while some attempt holds or awaits it.
    """

    def __init__(self) -> None:
        self._consumed: dict[str, set[int]] = {}
        self._accounts_lock = Lock()
        self._key_locks: dict[tuple[str, int], _KeyLock] = {}
        self._key_locks_guard = Lock()

    def _nonces_for(self, account: str) -> set[int]:
        nonces = self._consumed.get(account)
        if nonces is None:
            with self._accounts_lock:
                nonces = self._consumed.setdefault(account, set())
        return nonces

    @contextmanager
    def _key_lock(self, account: str, nonce: int) -> Iterator[None]:
        key = (account, nonce)
        with self._key_locks_guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock()
            entry.waiters += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._key_locks_guard:
                entry.waiters -= 1
                if entry.waiters == 0:
                    del self._key_locks[key]

    def is_consumed(self, account: str, nonce: int) -> bool:
        """Return True if the nonce has already been consumed for the account."""
        account = to_checksum_address(account)
        with self._key_lock(account, nonce):
            return nonce in self._consumed.get(account, ())

    def try_consume(self, account: str, nonce: int) -> bool:
        """Mark the nonce consumed; return False if it already was."""
        account = to_checksum_address(account)
        nonces = self._nonces_for(account)
        with self._key_lock(account, nonce):
            if nonce in nonces:
                return False
            nonces.add(nonce)
            return True

    def snapshot(self) -> dict[str, frozenset[int]]:
        """Return a copy of the consumed nonces keyed by account."""
        with self._accounts_lock:
            return {account: frozenset(nonces) for account, nonces in self._consumed.items()}


class DatabasePermitRegistry:
    """Registry persisted in the ``consumed_nonce`` table.

    The composite primary key makes the insert itself the check-and-mark: a
    second insert of the same pair fails with ``IntegrityError``.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def is_consumed(self, account: str, nonce: int) -> bool:
        """Return True if a replay marker row exists for the pair."""
        key = (to_checksum_address(account), _nonce_hex(nonce))
        with self._session_factory() as db:
            return db.get(ConsumedNonce, key) is not None

    def try_consume(self, account: str, nonce: int) -> bool:
        """Insert the replay marker; return False if it was already present."""
        account = to_checksum_address(account)
        with self._session_factory() as db:
            db.add(ConsumedNonce(account=account, nonce_hex=_nonce_hex(nonce)))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return False
        return True


class RedisPermitRegistry:
    """Registry kept as one Redis set per account.

    ``SADD`` reports how many members were newly added, which makes it an
    atomic check-and-mark on the server side.
    """

    def __init__(self, client: redis.Redis | None = None, key_prefix: str | None = None) -> None:
        self._redis = client if client is not None else redis.from_url(settings.redis_url)
        self._prefix = key_prefix or settings.redis_key_prefix

    def _key(self, account: str) -> str:
        return f"{self._prefix}:consumed:{to_checksum_address(account)}"

    def is_consumed(self, account: str, nonce: int) -> bool:
        """Return True if the nonce is a member of the account's set."""
        return bool(self._redis.sismember(self._key(account), str(nonce)))

    def try_consume(self, account: str, nonce: int) -> bool:
        """Add the nonce to the account's set; return False if it was present."""
        return int(self._redis.sadd(self._key(account), str(nonce))) == 1


@lru_cache(maxsize=1)
def get_permit_registry() -> PermitRegistry:
    """Return the process-wide registry for the configured backend."""
    backend = settings.registry_backend
    logger.info("Using %s permit registry", backend)
    if backend == "database":
        return DatabasePermitRegistry()
    if backend == "redis":
        return RedisPermitRegistry()
    return InMemoryPermitRegistry()

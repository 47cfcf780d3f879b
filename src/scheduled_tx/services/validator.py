"""Permit validation for scheduled transactions.

Checks run in a fixed order, each a terminal rejection:

1. expiry    -> ``TransactionExpiredError`` when ``now > not_after``
2. earliness -> ``TransactionTooEarlyError`` when ``now < not_before``
3. replay    -> ``TransactionAlreadyExecutedError`` unless ``try_consume`` succeeds
4. signature -> ``InvalidAuthorizationError`` when the vault refuses the digest

The nonce is burned at step 3, before the vault is consulted. It stays burned
even if the signature check or the later dispatch fails, so a reentrant or
concurrent call can never reach the vault twice for the same permit.

Signatures are judged against the vault's owners at call time, not at
signing time: a permit signed by an owner who has since been removed fails.
"""

from __future__ import annotations

import logging

from scheduled_tx.core.errors import (
    InvalidAuthorizationError,
    ScheduledTxError,
    SignatureRejectedError,
    TransactionAlreadyExecutedError,
    TransactionExpiredError,
    TransactionTooEarlyError,
)
from scheduled_tx.services.registry import PermitRegistry
from scheduled_tx.services.typed_data import (
    DomainContext,
    Permit,
    encode_transaction_data,
)
from scheduled_tx.services.vault import Vault, VaultLookup
from scheduled_tx.utils.hash import keccak256

logger = logging.getLogger(__name__)


class PermitValidator:
    """Runs the ordered checks for a single execution attempt."""

    def __init__(self, domain: DomainContext, registry: PermitRegistry, vaults: VaultLookup) -> None:
        self.domain = domain
        self.registry = registry
        self.vaults = vaults

    def validate(self, permit: Permit, signatures: bytes, now: int) -> Vault:
        """Validate ``permit`` at time ``now`` and return the approving vault.

        Raises:
            ScheduledTxError: the specific rejection for the first failed check.
        """
        try:
            self._check_window(permit, now)
            self._consume(permit)
            return self._check_signatures(permit, signatures)
        except ScheduledTxError as err:
            logger.info(
                "Rejected scheduled tx account=%s nonce=%d reason=%s",
                permit.account,
                permit.nonce,
                err.reason,
            )
            raise

    def _check_window(self, permit: Permit, now: int) -> None:
        if now > permit.not_after:
            raise TransactionExpiredError(permit.account, permit.nonce)
        if now < permit.not_before:
            raise TransactionTooEarlyError(permit.account, permit.nonce)

    def _consume(self, permit: Permit) -> None:
        if not self.registry.try_consume(permit.account, permit.nonce):
            raise TransactionAlreadyExecutedError(permit.account, permit.nonce)

    def _check_signatures(self, permit: Permit, signatures: bytes) -> Vault:
        vault = self.vaults.get(permit.account)
        if vault is None:
            raise InvalidAuthorizationError(
                permit.account, permit.nonce, f"No signature authority for {permit.account}"
            )
        data = encode_transaction_data(self.domain, permit)
        try:
            vault.check_signatures(keccak256(data), data, signatures)
        except SignatureRejectedError as err:
            raise InvalidAuthorizationError(permit.account, permit.nonce, str(err)) from err
        return vault

"""Error taxonomy for scheduled transaction execution.

Every rejection carries a stable ``reason`` so relayers can tell "try later",
"too late", "already done", "bad signature" and "action failed" apart.
"""

from __future__ import annotations


class ScheduledTxError(RuntimeError):
    """Base exception for a rejected execution attempt."""

    reason: str = "Rejected"

    def __init__(self, account: str, nonce: int, message: str | None = None) -> None:
        self.account = account
        self.nonce = nonce
        super().__init__(message or f"{self.reason}: account={account} nonce={nonce}")


class TransactionExpiredError(ScheduledTxError):
    """Raised when the current time is past the permit's ``not_after``."""

    reason = "Expired"


class TransactionTooEarlyError(ScheduledTxError):
    """Raised when the current time is before the permit's ``not_before``."""

    reason = "TooEarly"


class TransactionAlreadyExecutedError(ScheduledTxError):
    """Raised when the ``(account, nonce)`` pair has already been consumed."""

    reason = "AlreadyExecuted"


class InvalidAuthorizationError(ScheduledTxError):
    """Raised when the signature authority refuses the digest/signatures."""

    reason = "InvalidAuthorization"


class ExecutionFailedError(ScheduledTxError):
    """Raised when the vault reports that the action itself failed."""

    reason = "ExecutionFailed"


class SignatureRejectedError(RuntimeError):
    """Raised by a signature authority that does not approve a digest."""


class VaultError(RuntimeError):
    """Raised when the vault aborts a call outright."""

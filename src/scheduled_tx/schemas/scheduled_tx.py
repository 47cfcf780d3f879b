"""Scheduled transaction Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from scheduled_tx.services.typed_data import UINT64_MAX, UINT256_MAX

_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


def _decode_hex(value: str) -> bytes:
    cleaned = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(cleaned)
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err


class ScheduledTxParams(BaseModel):
    """Signed fields of a scheduled transaction."""

    to: str = Field(..., pattern=_ADDRESS_PATTERN, description="Call target")
    value: int = Field(0, ge=0, le=UINT256_MAX, description="Native amount to send")
    data: str = Field("0x", description="Hex-encoded calldata; empty for a plain transfer")
    nonce: int = Field(..., ge=0, le=UINT256_MAX)
    not_before: int = Field(..., ge=0, le=UINT64_MAX, description="Earliest execution time (unix seconds)")
    not_after: int = Field(..., ge=0, le=UINT64_MAX, description="Latest execution time (unix seconds)")

    @field_validator("data")
    @classmethod
    def _validate_data(cls, value: str) -> str:
        _decode_hex(value)
        return value

    @property
    def data_bytes(self) -> bytes:
        return _decode_hex(self.data)


class ScheduledTxExecute(ScheduledTxParams):
    """Request body for executing a scheduled transaction."""

    account: str = Field(..., pattern=_ADDRESS_PATTERN, description="Vault the transaction runs as")
    signatures: str = Field(..., description="Hex-encoded owner signature blob")

    @field_validator("signatures")
    @classmethod
    def _validate_signatures(cls, value: str) -> str:
        _decode_hex(value)
        return value

    @property
    def signature_bytes(self) -> bytes:
        return _decode_hex(self.signatures)


class ScheduledTxResult(BaseModel):
    """Response returned after a successful execution."""

    status: str = "executed"
    account: str
    nonce: int
    transaction_hash: str
    executed_at: int


class TransactionHashResponse(BaseModel):
    """Signing digest for a set of scheduled transaction parameters."""

    transaction_hash: str
    domain_separator: str


class NonceStatus(BaseModel):
    """Replay status of an ``(account, nonce)`` pair."""

    account: str
    nonce: int
    used: bool


class DomainResponse(BaseModel):
    """EIP-712 domain this deployment signs under."""

    name: str
    version: str
    chain_id: int
    verifying_contract: str
    domain_separator: str

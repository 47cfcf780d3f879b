"""Typed structured-data hashing for scheduled transactions.

Implements the EIP-712 encoding the vault's signers sign over:

    domainSeparator = keccak256(abi.encode(
        DOMAIN_TYPEHASH, keccak256(name), keccak256(version), chainId, verifyingContract))
    structHash = keccak256(abi.encode(
        SCHEDULED_TX_TYPEHASH, to, value, keccak256(data), nonce, notBefore, notAfter))
    digest = keccak256(0x19 || 0x01 || domainSeparator || structHash)

Everything here is pure; no I/O and no shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Final

from eth_abi import encode
from eth_utils import to_checksum_address

from scheduled_tx.utils.hash import keccak256

DOMAIN_NAME: Final[str] = "ScheduledTxModule"
DOMAIN_VERSION: Final[str] = "1"

DOMAIN_TYPE: Final[str] = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
SCHEDULED_TX_TYPE: Final[str] = (
    "ScheduledTransaction(address to,uint256 value,bytes data,uint256 nonce,"
    "uint64 notBefore,uint64 notAfter)"
)

DOMAIN_TYPEHASH: Final[bytes] = keccak256(DOMAIN_TYPE.encode())
SCHEDULED_TX_TYPEHASH: Final[bytes] = keccak256(SCHEDULED_TX_TYPE.encode())

EIP712_PREFIX: Final[bytes] = b"\x19\x01"

UINT64_MAX: Final[int] = (1 << 64) - 1
UINT256_MAX: Final[int] = (1 << 256) - 1


def _check_uint(name: str, value: int, upper: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > upper:
        raise ValueError(f"{name} out of range: {value}")
    return value


@dataclass(frozen=True)
class DomainContext:
    """Deployment constants binding a digest to one module instance and network."""

    chain_id: int
    verifying_contract: str
    name: str = field(default=DOMAIN_NAME, init=False)
    version: str = field(default=DOMAIN_VERSION, init=False)

    def __post_init__(self) -> None:
        _check_uint("chain_id", self.chain_id, UINT256_MAX)
        object.__setattr__(self, "verifying_contract", to_checksum_address(self.verifying_contract))

    @cached_property
    def separator(self) -> bytes:
        """The 32-byte domain separator."""
        return hash_domain(self)


@dataclass(frozen=True)
class Permit:
    """A single scheduled action a vault's signers pre-authorized.

    ``not_before > not_after`` is accepted here; such a permit can never
    pass the window checks.
    """

    account: str
    target: str
    amount: int
    payload: bytes
    nonce: int
    not_before: int
    not_after: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "account", to_checksum_address(self.account))
        object.__setattr__(self, "target", to_checksum_address(self.target))
        if not isinstance(self.payload, (bytes, bytearray)):
            raise TypeError("payload must be bytes")
        object.__setattr__(self, "payload", bytes(self.payload))
        _check_uint("amount", self.amount, UINT256_MAX)
        _check_uint("nonce", self.nonce, UINT256_MAX)
        _check_uint("not_before", self.not_before, UINT64_MAX)
        _check_uint("not_after", self.not_after, UINT64_MAX)


def hash_domain(domain: DomainContext) -> bytes:
    """Return the EIP-712 domain separator for ``domain``."""
    return keccak256(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                DOMAIN_TYPEHASH,
                keccak256(domain.name.encode()),
                keccak256(domain.version.encode()),
                domain.chain_id,
                domain.verifying_contract,
            ],
        )
    )


def hash_struct(permit: Permit) -> bytes:
    """Return the EIP-712 struct hash of a permit's signed fields."""
    return keccak256(
        encode(
            ["bytes32", "address", "uint256", "bytes32", "uint256", "uint64", "uint64"],
            [
                SCHEDULED_TX_TYPEHASH,
                permit.target,
                permit.amount,
                keccak256(permit.payload),
                permit.nonce,
                permit.not_before,
                permit.not_after,
            ],
        )
    )


def encode_transaction_data(domain: DomainContext, permit: Permit) -> bytes:
    """Return the 66-byte pre-image ``0x1901 || domainSeparator || structHash``."""
    return EIP712_PREFIX + domain.separator + hash_struct(permit)


def hash_permit(domain: DomainContext, permit: Permit) -> bytes:
    """Return the 32-byte digest the vault's signers sign."""
    return keccak256(encode_transaction_data(domain, permit))

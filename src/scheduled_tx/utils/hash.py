# src/scheduled_tx/utils/hash.py
"""Hashing helpers for EVM-compatible digests."""

from __future__ import annotations

from eth_utils import keccak


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of the supplied data."""
    return keccak(primitive=data)


def keccak256_hex(data: bytes) -> str:
    """Return the 0x-prefixed hexadecimal Keccak-256 digest."""
    return "0x" + keccak256(data).hex()

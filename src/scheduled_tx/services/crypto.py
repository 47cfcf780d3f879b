# src/scheduled_tx/services/crypto.py
"""Ed25519 helpers used by vault owners and the reference vault."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PUBKEY_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 64
SIGNATURE_ENTRY_BYTES = PUBKEY_LENGTH_BYTES + SIGNATURE_LENGTH_BYTES


class CryptoService:
    """Service handling the owner signature format.

    A signature blob is a concatenation of ``pubkey(32) || signature(64)``
    entries ordered by strictly ascending public key.
    """

    @staticmethod
    def verify_signature_bytes(pubkey_bytes: bytes, message: bytes, signature: bytes) -> bool:
        """Verify an Ed25519 signature over raw bytes."""
        try:
            pubkey = Ed25519PublicKey.from_public_bytes(pubkey_bytes)
            pubkey.verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False

    @staticmethod
    def generate_key_pair() -> tuple[bytes, bytes]:
        """Generate a new Ed25519 owner key pair.

        Returns:
            Tuple of (private_key_bytes, public_key_bytes)
        """
        private_key = Ed25519PrivateKey.generate()
        private_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return private_bytes, CryptoService.public_key_for(private_bytes)

    @staticmethod
    def public_key_for(private_key_bytes: bytes) -> bytes:
        """Return the raw public key matching a raw Ed25519 private key."""
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err
        return private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @staticmethod
    def sign_message(private_key_bytes: bytes, message: bytes) -> bytes:
        """Sign a message with an Ed25519 private key.

        Args:
            private_key_bytes: Raw Ed25519 private key bytes
            message: Message to sign

        Returns:
            Raw signature bytes
        """
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
            return private_key.sign(message)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err

    @staticmethod
    def pack_signatures(entries: Iterable[tuple[bytes, bytes]]) -> bytes:
        """Concatenate ``(pubkey, signature)`` pairs in ascending pubkey order."""
        blob = bytearray()
        for pubkey, signature in sorted(entries, key=lambda entry: entry[0]):
            if len(pubkey) != PUBKEY_LENGTH_BYTES:
                raise ValueError("Ed25519 public keys must be 32 bytes")
            if len(signature) != SIGNATURE_LENGTH_BYTES:
                raise ValueError("Ed25519 signatures must be 64 bytes")
            blob += pubkey + signature
        return bytes(blob)

    @staticmethod
    def split_signatures(blob: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(pubkey, signature)`` pairs from a packed blob."""
        if len(blob) % SIGNATURE_ENTRY_BYTES:
            raise ValueError("Signature blob length is not a multiple of 96 bytes")
        for offset in range(0, len(blob), SIGNATURE_ENTRY_BYTES):
            entry = blob[offset : offset + SIGNATURE_ENTRY_BYTES]
            yield entry[:PUBKEY_LENGTH_BYTES], entry[PUBKEY_LENGTH_BYTES:]

    @staticmethod
    def sign_digest(private_keys: Iterable[bytes], digest: bytes) -> bytes:
        """Sign ``digest`` with every key and return the packed blob."""
        return CryptoService.pack_signatures(
            (CryptoService.public_key_for(key), CryptoService.sign_message(key, digest))
            for key in private_keys
        )

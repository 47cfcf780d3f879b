# src/scheduled_tx/models/__init__.py
"""SQLAlchemy models for the scheduled transaction module."""

from .consumed_nonce import ConsumedNonce

__all__ = ["ConsumedNonce"]

"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .scheduled_tx import (
    DomainResponse,
    NonceStatus,
    ScheduledTxExecute,
    ScheduledTxParams,
    ScheduledTxResult,
    TransactionHashResponse,
)

__all__ = [
    "DomainResponse",
    "NonceStatus",
    "ScheduledTxExecute",
    "ScheduledTxParams",
    "ScheduledTxResult",
    "TransactionHashResponse",
]

# src/scheduled_tx/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .scheduled_txs import router as scheduled_txs_router
from .system import router as system_router

__all__ = [
    "scheduled_txs_router",
    "system_router",
]

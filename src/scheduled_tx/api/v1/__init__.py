# src/scheduled_tx/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import scheduled_txs_router, system_router

__all__ = [
    "scheduled_txs_router",
    "system_router",
]

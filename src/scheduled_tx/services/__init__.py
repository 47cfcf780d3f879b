# src/scheduled_tx/services/__init__.py
"""Business logic services for the scheduled transaction module."""

from .crypto import CryptoService
from .dispatcher import ExecutionDispatcher
from .module import ExecutionReceipt, ScheduledTxModule
from .registry import (
    DatabasePermitRegistry,
    InMemoryPermitRegistry,
    PermitRegistry,
    RedisPermitRegistry,
)
from .validator import PermitValidator
from .vault import InMemoryVault, Ledger, Operation, TokenContract, VaultDirectory

__all__ = [
    "CryptoService",
    "ExecutionDispatcher",
    "ExecutionReceipt",
    "ScheduledTxModule",
    "PermitRegistry",
    "InMemoryPermitRegistry",
    "DatabasePermitRegistry",
    "RedisPermitRegistry",
    "PermitValidator",
    "InMemoryVault",
    "Ledger",
    "Operation",
    "TokenContract",
    "VaultDirectory",
]

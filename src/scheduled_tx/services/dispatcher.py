"""Execution dispatcher: hands a validated action to the vault."""

from __future__ import annotations

import logging

from scheduled_tx.core.errors import ExecutionFailedError
from scheduled_tx.services.typed_data import Permit
from scheduled_tx.services.vault import Operation, Vault

logger = logging.getLogger(__name__)


class ExecutionDispatcher:
    """Forwards ``(target, amount, payload)`` as a plain module call.

    The operation is always ``Operation.CALL``. A ``False`` from the vault
    becomes ``ExecutionFailedError``; anything the vault raises propagates.
    """

    def __init__(self, module_address: str) -> None:
        self.module_address = module_address

    def dispatch(self, vault: Vault, permit: Permit) -> None:
        success = vault.exec_transaction_from_module(
            self.module_address,
            permit.target,
            permit.amount,
            permit.payload,
            Operation.CALL,
        )
        if not success:
            raise ExecutionFailedError(permit.account, permit.nonce, "Vault reported execution failure")
        logger.debug("Dispatched nonce %d for %s to %s", permit.nonce, permit.account, permit.target)

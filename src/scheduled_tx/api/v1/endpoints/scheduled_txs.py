# src/scheduled_tx/api/v1/endpoints/scheduled_txs.py
"""Scheduled transaction endpoints for relayers and signing tools."""

from __future__ import annotations

import logging
from typing import Annotated, Final

from eth_utils import (
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    to_checksum_address,
)
from fastapi import APIRouter, Depends, HTTPException, Path, status

from scheduled_tx.core.errors import (
    ExecutionFailedError,
    InvalidAuthorizationError,
    ScheduledTxError,
    TransactionAlreadyExecutedError,
    TransactionExpiredError,
    TransactionTooEarlyError,
    VaultError,
)
from scheduled_tx.schemas.scheduled_tx import (
    DomainResponse,
    NonceStatus,
    ScheduledTxExecute,
    ScheduledTxParams,
    ScheduledTxResult,
    TransactionHashResponse,
)
from scheduled_tx.services.module import ScheduledTxModule, get_scheduled_tx_module

logger = logging.getLogger(__name__)

HTTP_UNPROCESSABLE: Final[int] = 422

_STATUS_BY_ERROR: Final[dict[type[ScheduledTxError], int]] = {
    TransactionExpiredError: status.HTTP_410_GONE,
    TransactionTooEarlyError: status.HTTP_425_TOO_EARLY,
    TransactionAlreadyExecutedError: status.HTTP_409_CONFLICT,
    InvalidAuthorizationError: status.HTTP_403_FORBIDDEN,
    ExecutionFailedError: HTTP_UNPROCESSABLE,
}

router = APIRouter(prefix="/scheduled-transactions", tags=["scheduled-transactions"])


def get_module_dep() -> ScheduledTxModule:
    """Return the shared scheduled transaction module."""
    return get_scheduled_tx_module()


ModuleDep = Annotated[ScheduledTxModule, Depends(get_module_dep)]


def _require_address(value: str) -> str:
    """Return the checksum form of ``value`` or reject the request.

    Mixed-case input is an EIP-55 checksum claim and must be a valid one.
    """
    if not is_address(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid address: {value}",
        )
    if is_checksum_formatted_address(value) and not is_checksum_address(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid address checksum: {value}",
        )
    return to_checksum_address(value)


@router.post("/execute", response_model=ScheduledTxResult)
async def execute_scheduled_transaction(
    payload: ScheduledTxExecute,
    module: ModuleDep,
) -> ScheduledTxResult:
    """Execute a signed scheduled transaction if its window is open.

    Rejections keep their specific reason in ``detail.reason`` so relayers
    can tell a retry-later from a permanent failure.
    """
    try:
        receipt = module.execute(
            account=_require_address(payload.account),
            target=_require_address(payload.to),
            amount=payload.value,
            payload=payload.data_bytes,
            nonce=payload.nonce,
            not_before=payload.not_before,
            not_after=payload.not_after,
            signatures=payload.signature_bytes,
        )
    except ScheduledTxError as err:
        raise HTTPException(
            status_code=_STATUS_BY_ERROR.get(type(err), status.HTTP_400_BAD_REQUEST),
            detail={"reason": err.reason, "message": str(err)},
        ) from err
    except VaultError as err:
        logger.warning("Vault aborted scheduled tx for %s: %s", payload.account, err)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"reason": "VaultError", "message": str(err)},
        ) from err

    return ScheduledTxResult(
        account=receipt.account,
        nonce=receipt.nonce,
        transaction_hash="0x" + receipt.transaction_hash.hex(),
        executed_at=receipt.executed_at,
    )


@router.post("/hash", response_model=TransactionHashResponse)
async def get_transaction_hash(
    params: ScheduledTxParams,
    module: ModuleDep,
) -> TransactionHashResponse:
    """Return the digest vault owners must sign for these parameters."""
    digest = module.get_transaction_hash(
        target=_require_address(params.to),
        amount=params.value,
        payload=params.data_bytes,
        nonce=params.nonce,
        not_before=params.not_before,
        not_after=params.not_after,
    )
    return TransactionHashResponse(
        transaction_hash="0x" + digest.hex(),
        domain_separator="0x" + module.domain_separator.hex(),
    )


@router.get("/domain", response_model=DomainResponse)
async def get_domain(module: ModuleDep) -> DomainResponse:
    """Expose the EIP-712 domain for signing tools."""
    domain = module.domain
    return DomainResponse(
        name=domain.name,
        version=domain.version,
        chain_id=domain.chain_id,
        verifying_contract=domain.verifying_contract,
        domain_separator="0x" + domain.separator.hex(),
    )


@router.get("/{account}/nonces/{nonce}", response_model=NonceStatus)
async def get_nonce_status(
    account: str,
    nonce: Annotated[int, Path(ge=0)],
    module: ModuleDep,
) -> NonceStatus:
    """Report whether a nonce has been consumed for an account."""
    checksum = _require_address(account)
    return NonceStatus(account=checksum, nonce=nonce, used=module.is_nonce_used(checksum, nonce))

"""System and transparency endpoints for the scheduled transaction API."""

from __future__ import annotations

import time

from fastapi import APIRouter

from scheduled_tx.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes connection strings; suitable for relayer dashboards.
    """
    domain = settings.domain_context
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "domain": {
            "name": domain.name,
            "version": domain.version,
            "chain_id": domain.chain_id,
            "verifying_contract": domain.verifying_contract,
        },
        "registry": {
            "backend": settings.registry_backend,
        },
    }


@router.get("/status")
async def get_system_status() -> dict[str, object]:
    """Get overall system status for monitoring dashboards."""
    return {
        "service": "scheduled-tx-module",
        "version": settings.app_version,
        "status": "operational",
        "timestamp": int(time.time()),
        "environment": "production" if not settings.debug else "development",
    }

# src/scheduled_tx/main.py
"""Main entry point for the scheduled transaction API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from scheduled_tx.api.v1 import scheduled_txs_router, system_router
from scheduled_tx.core.settings import settings
from scheduled_tx.services.vault import load_vaults

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Initialize FastAPI app
app = FastAPI(
    title="Scheduled Tx API",
    description="Relay pre-signed, time-bounded vault transactions",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(scheduled_txs_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.registry_backend == "database":
        from scheduled_tx.db.session import create_tables

        create_tables()
    load_vaults(settings.vaults, module_address=settings.domain_context.verifying_contract)
    logger.info(
        "Scheduled tx module %s on chain %d (registry: %s)",
        settings.domain_context.verifying_contract,
        settings.chain_id,
        settings.registry_backend,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Scheduled Tx API",
        "version": settings.app_version,
        "description": "Relay pre-signed, time-bounded vault transactions",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("scheduled_tx.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

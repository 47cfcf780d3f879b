"""Engine and session factory for the database-backed permit registry."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from scheduled_tx.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for registry tables."""


# Registers the registry tables on Base.metadata.
import scheduled_tx.models  # noqa: E402,F401


def make_engine(url: str, *, echo: bool = False) -> Engine:
    """Build an engine for ``url``.

    SQLite connections are shared across the API worker threads, so the
    same-thread check is turned off for them.
    """
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, echo=echo, connect_args=connect_args)


engine = make_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables() -> None:
    """Create the registry tables on the configured database if missing."""
    Base.metadata.create_all(bind=engine)

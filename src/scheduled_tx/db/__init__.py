# src/scheduled_tx/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, make_engine

__all__ = ["SessionLocal", "make_engine"]

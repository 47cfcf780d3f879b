# src/scheduled_tx/models/consumed_nonce.py
"""Durable replay markers for scheduled transactions."""


from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from scheduled_tx.db.session import Base


class ConsumedNonce(Base):
    """Record indicating that a permit nonce has been consumed for an account."""

    __tablename__ = "consumed_nonce"

    # (account, nonce_hex) -> existence means "consumed"; rows are never deleted.
    account: Mapped[str] = mapped_column(Text, primary_key=True)
    nonce_hex: Mapped[str] = mapped_column(Text, primary_key=True)

"""consumed nonce registry

Revision ID: 3b9e21c4d7a0
Revises:
Create Date: 2026-10-18 09:12:44.318102

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b9e21c4d7a0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the replay marker table."""
    op.create_table(
        "consumed_nonce",
        sa.Column("account", sa.Text(), nullable=False),
        sa.Column("nonce_hex", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("account", "nonce_hex"),
    )


def downgrade() -> None:
    """Drop the replay marker table."""
    op.drop_table("consumed_nonce")

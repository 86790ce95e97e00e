"""create participant

Revision ID: 5b1c2e7d9a40
Revises:
Create Date: 2026-10-16 09:12:41.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1c2e7d9a40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the participant table."""
    op.create_table(
        "participant",
        sa.Column("identity", sa.String(length=128), nullable=False),
        sa.Column("contact_encrypted", sa.Text(), nullable=False),
        sa.Column("referrer", sa.String(length=128), nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("identity"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_participant_timestamp", "participant", ["timestamp"], unique=False)


def downgrade() -> None:
    """Drop the participant table."""
    op.drop_index("ix_participant_timestamp", table_name="participant")
    op.drop_table("participant")

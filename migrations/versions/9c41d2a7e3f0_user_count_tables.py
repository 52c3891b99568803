"""user list ledger and single-row user count

Revision ID: 9c41d2a7e3f0
Revises:
Create Date: 2025-11-03 09:12:44.518230

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9c41d2a7e3f0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the ledger and the counter, seeding the counter at zero."""
    op.create_table(
        "user_list",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("idx_user_list_username", "user_list", ["username"])
    op.create_index("idx_user_list_email", "user_list", ["email"])
    op.create_index("idx_user_list_created_at", "user_list", ["created_at"])

    user_stats = op.create_table(
        "user_stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("total_users", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("id = 1", name="single_row_constraint"),
        sa.CheckConstraint("total_users >= 0", name="non_negative_total_users"),
    )
    op.bulk_insert(user_stats, [{"id": 1, "total_users": 0}])


def downgrade() -> None:
    """Drop both tables."""
    op.drop_table("user_stats")
    op.drop_index("idx_user_list_created_at", table_name="user_list")
    op.drop_index("idx_user_list_email", table_name="user_list")
    op.drop_index("idx_user_list_username", table_name="user_list")
    op.drop_table("user_list")

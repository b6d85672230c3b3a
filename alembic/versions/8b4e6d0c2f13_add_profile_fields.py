"""Add profile fields to users

Revision ID: 8b4e6d0c2f13
Revises: 3f1c2a9d7e01
Create Date: 2025-11-01 13:34:36.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b4e6d0c2f13"
down_revision: str | None = "3f1c2a9d7e01"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Profile fields
    op.add_column("users", sa.Column("phone", sa.String(length=32), nullable=True))
    op.add_column("users", sa.Column("avatar_url", sa.String(length=512), nullable=True))
    op.add_column(
        "users",
        sa.Column("timezone", sa.String(length=64), server_default="UTC", nullable=False),
    )
    op.add_column(
        "users",
        sa.Column("locale", sa.String(length=16), server_default="en-US", nullable=False),
    )
    op.add_column(
        "users",
        sa.Column(
            "preferences",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
    )

    # Login tracking
    op.add_column(
        "users", sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True)
    )
    op.add_column("users", sa.Column("last_login_ip", sa.String(length=64), nullable=True))
    op.create_index(op.f("ix_users_last_login_at"), "users", ["last_login_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_users_last_login_at"), table_name="users")
    for column in (
        "last_login_ip",
        "last_login_at",
        "preferences",
        "locale",
        "timezone",
        "avatar_url",
        "phone",
    ):
        op.drop_column("users", column)

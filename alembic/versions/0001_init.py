"""Fixed and custom extension tables

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "fixed_extensions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("extension", sa.String(20), nullable=False, unique=True),
        sa.Column("description", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "custom_extensions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("extension", sa.String(20), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("custom_extensions")
    op.drop_table("fixed_extensions")

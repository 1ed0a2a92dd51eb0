from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from extguard.db.base import Base


class FixedExtension(Base):
    """Curated extension whose blocked state is toggled rather than deleted."""

    __tablename__ = "fixed_extensions"

    id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True
    )
    extension: Mapped[str] = mapped_column(sa.String(20), unique=True)
    description: Mapped[str] = mapped_column(sa.String(255), server_default=sa.text("''"))
    is_blocked: Mapped[bool] = mapped_column(
        sa.Boolean(), default=False, server_default=sa.false()
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), onupdate=sa.text("CURRENT_TIMESTAMP"), nullable=True
    )

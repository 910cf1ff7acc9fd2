from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class ActivationCode(Base):
    __tablename__ = "activation_codes"
    __table_args__ = (
        CheckConstraint(
            "content_type IN ('playlist','slideshow')",
            name="ck_activation_codes_content_type",
        ),
        CheckConstraint(
            "max_uses IS NULL OR max_uses > 0",
            name="ck_activation_codes_max_uses_positive",
        ),
        CheckConstraint("uses_count >= 0", name="ck_activation_codes_uses_count_non_negative"),
        CheckConstraint(
            "max_uses IS NULL OR uses_count <= max_uses",
            name="ck_activation_codes_uses_count_le_max",
        ),
        Index("idx_activation_codes_content", "content_type", "content_id"),
        Index("idx_activation_codes_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    content_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uses_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    created_by_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

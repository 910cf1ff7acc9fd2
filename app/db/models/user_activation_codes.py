from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class UserActivationCode(Base):
    __tablename__ = "user_activation_codes"
    __table_args__ = (
        CheckConstraint(
            "content_type IN ('playlist','slideshow')",
            name="ck_user_activation_codes_content_type",
        ),
        UniqueConstraint("user_id", "code_id", name="uq_user_activation_codes_user_code"),
        Index("idx_user_activation_codes_user", "user_id"),
        Index("idx_user_activation_codes_code", "code_id"),
        Index("idx_user_activation_codes_content", "content_type", "content_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    code_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("activation_codes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    content_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

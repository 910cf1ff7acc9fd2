from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "subscription_tier IN ('free','basic','premium')",
            name="ck_users_subscription_tier",
        ),
        CheckConstraint(
            "status IN ('ACTIVE','SUSPENDED','DELETED')",
            name="ck_users_status",
        ),
        CheckConstraint(
            "(max_products IS NULL OR max_products >= 0) "
            "AND (max_audio_files IS NULL OR max_audio_files >= 0) "
            "AND (max_videos IS NULL OR max_videos >= 0) "
            "AND (max_playlists IS NULL OR max_playlists >= 0) "
            "AND (max_qr_codes IS NULL OR max_qr_codes >= 0) "
            "AND (max_slideshows IS NULL OR max_slideshows >= 0)",
            name="ck_users_limit_overrides_non_negative",
        ),
        Index("idx_users_subscription_tier", "subscription_tier"),
        Index("idx_users_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    subscription_tier: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'free'"),
    )
    max_products: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_audio_files: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_videos: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_playlists: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_qr_codes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_slideshows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'ACTIVE'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

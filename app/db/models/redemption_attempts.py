from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CHAR, CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class RedemptionAttempt(Base):
    __tablename__ = "redemption_attempts"
    __table_args__ = (
        CheckConstraint(
            "result IN ('ACCEPTED','REPLAYED','NOT_FOUND','DISABLED','EXPIRED','EXHAUSTED',"
            "'REVOKED','RATE_LIMITED')",
            name="ck_redemption_attempts_result",
        ),
        Index("idx_redemption_attempts_user_attempted", "user_id", "attempted_at"),
        Index("idx_redemption_attempts_code_hash_attempted", "code_hash", "attempted_at"),
        Index("idx_redemption_attempts_attempted_at", "attempted_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    code_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    result: Mapped[str] = mapped_column(String(16), nullable=False)
    attempted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

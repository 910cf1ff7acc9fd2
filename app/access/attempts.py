from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.redemption_attempts import RedemptionAttempt
from app.db.repo.redemption_attempts_repo import RedemptionAttemptsRepo
from app.db.session import SessionLocal


class AttemptResult(str, Enum):
    ACCEPTED = "ACCEPTED"
    REPLAYED = "REPLAYED"
    NOT_FOUND = "NOT_FOUND"
    DISABLED = "DISABLED"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"
    REVOKED = "REVOKED"
    RATE_LIMITED = "RATE_LIMITED"

    @property
    def counts_toward_block(self) -> bool:
        """Only guesses at unusable codes count; replays and revoked grants never do."""
        return self in _BLOCKING_RESULTS


_BLOCKING_RESULTS = frozenset(
    {
        AttemptResult.NOT_FOUND,
        AttemptResult.DISABLED,
        AttemptResult.EXPIRED,
        AttemptResult.EXHAUSTED,
    }
)


async def record_attempt(
    session: AsyncSession,
    *,
    user_id: int,
    code_hash: str,
    result: AttemptResult,
    now_utc: datetime,
    metadata: dict[str, object] | None = None,
) -> None:
    await RedemptionAttemptsRepo.create(
        session,
        attempt=RedemptionAttempt(
            user_id=user_id,
            code_hash=code_hash,
            result=AttemptResult(result).value,
            attempted_at=now_utc,
            metadata_=metadata or {},
        ),
    )


async def record_failed_attempt(
    *,
    user_id: int,
    code_hash: str,
    result: AttemptResult,
    now_utc: datetime,
    metadata: dict[str, object] | None = None,
) -> None:
    # Own transaction: the redeem transaction is about to roll back.
    async with SessionLocal.begin() as attempt_session:
        await record_attempt(
            attempt_session,
            user_id=user_id,
            code_hash=code_hash,
            result=result,
            now_utc=now_utc,
            metadata=metadata,
        )

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.attempts import AttemptResult
from app.access.errors import RedeemRateLimitedError
from app.core.config import get_settings
from app.db.repo.redemption_attempts_repo import RedemptionAttemptsRepo

BLOCKING_RESULT_VALUES = tuple(
    result.value for result in AttemptResult if result.counts_toward_block
)


async def redeem_blocked_until(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
) -> datetime | None:
    """When the user's redemption block ends, or ``None`` if they may redeem now.

    Too many failed guesses inside the window start a block measured from the last
    failure. Redeeming while blocked is itself recorded and restarts the block.
    """
    settings = get_settings()
    block = timedelta(minutes=settings.redeem_rate_limit_block_minutes)

    last_rejected_at = await RedemptionAttemptsRepo.get_last_user_attempt_at(
        session,
        user_id=user_id,
        since_utc=now_utc - block,
        attempt_results=(AttemptResult.RATE_LIMITED.value,),
    )
    if last_rejected_at is not None and last_rejected_at + block > now_utc:
        return last_rejected_at + block

    window_start = now_utc - timedelta(minutes=settings.redeem_rate_limit_window_minutes)
    failed_attempts = await RedemptionAttemptsRepo.count_user_attempts(
        session,
        user_id=user_id,
        since_utc=window_start,
        attempt_results=BLOCKING_RESULT_VALUES,
    )
    if failed_attempts < settings.redeem_rate_limit_max_failures:
        return None

    last_failed_at = await RedemptionAttemptsRepo.get_last_user_attempt_at(
        session,
        user_id=user_id,
        since_utc=window_start,
        attempt_results=BLOCKING_RESULT_VALUES,
    )
    if last_failed_at is None or last_failed_at + block <= now_utc:
        return None
    return last_failed_at + block


async def enforce_rate_limit(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
) -> None:
    blocked_until = await redeem_blocked_until(session, user_id=user_id, now_utc=now_utc)
    if blocked_until is not None:
        raise RedeemRateLimitedError(
            f"Too many failed attempts. Try again after {blocked_until:%H:%M} UTC."
        )

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.redemption_attempts import RedemptionAttempt


class RedemptionAttemptsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, attempt: RedemptionAttempt) -> RedemptionAttempt:
        session.add(attempt)
        await session.flush()
        return attempt

    @staticmethod
    async def count_user_attempts(
        session: AsyncSession,
        *,
        user_id: int,
        since_utc: datetime,
        attempt_results: Iterable[str] | None = None,
    ) -> int:
        stmt = select(func.count(RedemptionAttempt.id)).where(
            RedemptionAttempt.user_id == user_id,
            RedemptionAttempt.attempted_at >= since_utc,
        )
        if attempt_results is not None:
            values = tuple(attempt_results)
            if not values:
                return 0
            stmt = stmt.where(RedemptionAttempt.result.in_(values))

        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_last_user_attempt_at(
        session: AsyncSession,
        *,
        user_id: int,
        since_utc: datetime,
        attempt_results: Iterable[str] | None = None,
    ) -> datetime | None:
        stmt = select(func.max(RedemptionAttempt.attempted_at)).where(
            RedemptionAttempt.user_id == user_id,
            RedemptionAttempt.attempted_at >= since_utc,
        )
        if attempt_results is not None:
            values = tuple(attempt_results)
            if not values:
                return None
            stmt = stmt.where(RedemptionAttempt.result.in_(values))

        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def delete_attempted_before(
        session: AsyncSession,
        *,
        cutoff_utc: datetime,
        limit: int,
    ) -> int:
        resolved_limit = max(1, int(limit))
        candidate_ids = (
            select(RedemptionAttempt.id)
            .where(RedemptionAttempt.attempted_at < cutoff_utc)
            .order_by(RedemptionAttempt.attempted_at.asc(), RedemptionAttempt.id.asc())
            .limit(resolved_limit)
            .scalar_subquery()
        )
        stmt = (
            delete(RedemptionAttempt)
            .where(RedemptionAttempt.id.in_(candidate_ids))
            .returning(RedemptionAttempt.id)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

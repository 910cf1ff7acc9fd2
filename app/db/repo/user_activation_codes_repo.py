from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user_activation_codes import UserActivationCode


class UserActivationCodesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, grant_id: int) -> UserActivationCode | None:
        return await session.get(UserActivationCode, grant_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        grant_id: int,
    ) -> UserActivationCode | None:
        stmt = select(UserActivationCode).where(UserActivationCode.id == grant_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_user_and_code(
        session: AsyncSession,
        *,
        user_id: int,
        code_id: int,
    ) -> UserActivationCode | None:
        stmt = select(UserActivationCode).where(
            UserActivationCode.user_id == user_id,
            UserActivationCode.code_id == code_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, grant: UserActivationCode) -> UserActivationCode:
        session.add(grant)
        await session.flush()
        return grant

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int = 200,
    ) -> list[UserActivationCode]:
        stmt = (
            select(UserActivationCode)
            .where(UserActivationCode.user_id == user_id)
            .order_by(UserActivationCode.added_at.desc(), UserActivationCode.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_for_code(session: AsyncSession, *, code_id: int) -> int:
        stmt = select(func.count(UserActivationCode.id)).where(
            UserActivationCode.code_id == code_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_valid_for_content(
        session: AsyncSession,
        *,
        user_id: int,
        content_type: str,
        content_id: int,
        now_utc: datetime,
    ) -> UserActivationCode | None:
        stmt = (
            select(UserActivationCode)
            .where(
                UserActivationCode.user_id == user_id,
                UserActivationCode.content_type == content_type,
                UserActivationCode.content_id == content_id,
                UserActivationCode.is_active.is_(True),
                or_(
                    UserActivationCode.expires_at.is_(None),
                    UserActivationCode.expires_at >= now_utc,
                ),
            )
            .order_by(UserActivationCode.added_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(session: AsyncSession, *, grant_id: int) -> int:
        stmt = delete(UserActivationCode).where(UserActivationCode.id == grant_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

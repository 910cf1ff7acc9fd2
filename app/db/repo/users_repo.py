from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        email: str,
        username: str | None = None,
        subscription_tier: str = "free",
        limit_overrides: dict[str, int | None] | None = None,
    ) -> User:
        user = User(
            email=email,
            username=username,
            subscription_tier=subscription_tier,
            status="ACTIVE",
            **(limit_overrides or {}),
        )
        session.add(user)
        await session.flush()
        return user

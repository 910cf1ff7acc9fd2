from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import ColumnElement, and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.activation_codes import ActivationCode
from app.db.models.playlists import Playlist
from app.db.models.slideshows import Slideshow

_OWNED_CONTENT_MODELS = {"playlist": Playlist, "slideshow": Slideshow}


def _owned_by(owner_id: int) -> ColumnElement[bool]:
    return or_(
        *(
            and_(
                ActivationCode.content_type == content_type,
                ActivationCode.content_id.in_(select(model.id).where(model.owner_id == owner_id)),
            )
            for content_type, model in _OWNED_CONTENT_MODELS.items()
        )
    )


class ActivationCodesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, code_id: int) -> ActivationCode | None:
        return await session.get(ActivationCode, code_id)

    @staticmethod
    async def get_owned_by_id(
        session: AsyncSession,
        code_id: int,
        *,
        owner_id: int,
    ) -> ActivationCode | None:
        stmt = select(ActivationCode).where(ActivationCode.id == code_id, _owned_by(owner_id))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        code_id: int,
    ) -> ActivationCode | None:
        stmt = select(ActivationCode).where(ActivationCode.id == code_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(
        session: AsyncSession,
        code: str,
        *,
        refresh: bool = False,
    ) -> ActivationCode | None:
        stmt = select(ActivationCode).where(ActivationCode.code == code)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_existing_codes(session: AsyncSession, codes: Iterable[str]) -> set[str]:
        values = tuple(codes)
        if not values:
            return set()
        stmt = select(ActivationCode.code).where(ActivationCode.code.in_(values))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def list_for_content(
        session: AsyncSession,
        *,
        content_type: str | None = None,
        content_id: int | None = None,
        owner_id: int | None = None,
        limit: int = 100,
    ) -> list[ActivationCode]:
        stmt = (
            select(ActivationCode)
            .order_by(ActivationCode.created_at.desc(), ActivationCode.id.desc())
            .limit(limit)
        )
        if content_type is not None:
            stmt = stmt.where(ActivationCode.content_type == content_type)
        if content_id is not None:
            stmt = stmt.where(ActivationCode.content_id == content_id)
        if owner_id is not None:
            stmt = stmt.where(_owned_by(owner_id))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        codes: list[ActivationCode],
    ) -> list[ActivationCode]:
        session.add_all(codes)
        await session.flush()
        return codes

    @staticmethod
    async def consume_use(
        session: AsyncSession,
        *,
        code_id: int,
        now_utc: datetime,
    ) -> int | None:
        """Atomically take one use of a redeemable code.

        Returns the new ``uses_count``, or ``None`` when the code stopped being redeemable
        (disabled, expired, exhausted or deleted) before the row lock was acquired.
        """
        stmt = (
            update(ActivationCode)
            .where(
                ActivationCode.id == code_id,
                ActivationCode.is_active.is_(True),
                or_(ActivationCode.expires_at.is_(None), ActivationCode.expires_at >= now_utc),
                or_(
                    ActivationCode.max_uses.is_(None),
                    ActivationCode.uses_count < ActivationCode.max_uses,
                ),
            )
            .values(uses_count=ActivationCode.uses_count + 1, updated_at=now_utc)
            .returning(ActivationCode.uses_count)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(session: AsyncSession, *, code_id: int) -> int:
        stmt = delete(ActivationCode).where(ActivationCode.id == code_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

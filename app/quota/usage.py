from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.resources_repo import ResourcesRepo
from app.quota.types import ResourceKind


async def current_usage(
    session: AsyncSession,
    *,
    user_id: int,
    resource_kind: ResourceKind,
) -> int:
    # Always a live count over the resource tables; there is no cached tally to drift.
    return await ResourcesRepo.count_live(
        session,
        owner_id=user_id,
        resource_kind=resource_kind,
    )


async def current_usage_by_kind(session: AsyncSession, *, user_id: int) -> dict[ResourceKind, int]:
    usage: dict[ResourceKind, int] = {}
    for kind in ResourceKind:
        usage[kind] = await current_usage(session, user_id=user_id, resource_kind=kind)
    return usage


def usage_percent(*, current: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return min(100, (current * 100 + limit // 2) // limit)

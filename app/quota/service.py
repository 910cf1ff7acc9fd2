from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User
from app.db.repo.resources_repo import ResourcesRepo
from app.db.repo.users_repo import UsersRepo
from app.quota.errors import QuotaExceededError, QuotaUserNotFoundError
from app.quota.resolver import resolve_all_limits, resolve_limit
from app.quota.tiers import can_edit_playlists, get_tier
from app.quota.types import QuotaDecision, QuotaSummary, QuotaUsageItem, ResourceKind
from app.quota.usage import current_usage, current_usage_by_kind, usage_percent

logger = structlog.get_logger(__name__)

CONTENT_NAME_BY_KIND: dict[ResourceKind, str] = {
    ResourceKind.PRODUCTS: "products",
    ResourceKind.MEDIA: "audio files",
    ResourceKind.VIDEOS: "videos",
    ResourceKind.PLAYLISTS: "playlists",
    ResourceKind.QR_CODES: "QR codes",
    ResourceKind.SLIDESHOWS: "slideshows",
}


def build_limit_message(*, resource_kind: ResourceKind, limit: int, tier: str) -> str:
    content_name = CONTENT_NAME_BY_KIND[resource_kind]
    return (
        f"You have reached your {content_name} limit ({limit}) for the {tier} plan. "
        f"Please upgrade your subscription to create more {content_name}."
    )


def decide(
    *,
    resource_kind: ResourceKind,
    tier: str,
    limit: int,
    current: int,
) -> QuotaDecision:
    allowed = current < limit
    return QuotaDecision(
        resource_kind=resource_kind,
        tier=tier,
        allowed=allowed,
        limit=limit,
        current=current,
        message=(
            None
            if allowed
            else build_limit_message(resource_kind=resource_kind, limit=limit, tier=tier)
        ),
    )


class QuotaService:
    @staticmethod
    async def _get_user(session: AsyncSession, user_id: int) -> User:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise QuotaUserNotFoundError
        return user

    @staticmethod
    async def can_create(
        session: AsyncSession,
        *,
        user_id: int,
        resource_kind: ResourceKind,
    ) -> QuotaDecision:
        """Point-in-time check. Not a reservation: use ``reserve`` before inserting."""
        kind = ResourceKind(resource_kind)
        user = await QuotaService._get_user(session, user_id)
        tier = get_tier(user.subscription_tier).id
        limit = resolve_limit(user, kind)
        current = await current_usage(session, user_id=user_id, resource_kind=kind)
        return decide(resource_kind=kind, tier=tier, limit=limit, current=current)

    @staticmethod
    async def reserve(
        session: AsyncSession,
        *,
        user_id: int,
        resource_kind: ResourceKind,
    ) -> QuotaDecision:
        """Admit one more resource of ``resource_kind`` inside the caller's transaction.

        Takes the per-(user, kind) advisory lock before counting, so the count cannot go
        stale until the caller commits or rolls back. The caller must insert the new row
        in the same transaction.
        """
        kind = ResourceKind(resource_kind)
        await ResourcesRepo.lock_owner_kind(session, owner_id=user_id, resource_kind=kind)
        decision = await QuotaService.can_create(session, user_id=user_id, resource_kind=kind)
        if not decision.allowed:
            logger.info(
                "quota_denied",
                user_id=user_id,
                resource_kind=kind.value,
                tier=decision.tier,
                limit=decision.limit,
                current=decision.current,
            )
            raise QuotaExceededError(decision)
        return decision

    @staticmethod
    async def summary(session: AsyncSession, *, user_id: int) -> QuotaSummary:
        user = await QuotaService._get_user(session, user_id)
        limits = resolve_all_limits(user)
        usage = await current_usage_by_kind(session, user_id=user_id)
        return QuotaSummary(
            tier=get_tier(user.subscription_tier).id,
            can_edit_playlists=can_edit_playlists(user.subscription_tier),
            items=[
                QuotaUsageItem(
                    resource_kind=kind,
                    limit=limits[kind],
                    current=usage[kind],
                    usage_percent=usage_percent(current=usage[kind], limit=limits[kind]),
                )
                for kind in ResourceKind
            ],
        )

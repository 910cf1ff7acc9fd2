from __future__ import annotations

from typing import Protocol

from app.quota.tiers import get_tier
from app.quota.types import ResourceKind, TierLimits


class LimitOverrides(Protocol):
    subscription_tier: str
    max_products: int | None
    max_audio_files: int | None
    max_videos: int | None
    max_playlists: int | None
    max_qr_codes: int | None
    max_slideshows: int | None


# ResourceKind -> field name shared by TierLimits and the users override columns.
LIMIT_FIELD_BY_KIND: dict[ResourceKind, str] = {
    ResourceKind.PRODUCTS: "max_products",
    ResourceKind.MEDIA: "max_audio_files",
    ResourceKind.VIDEOS: "max_videos",
    ResourceKind.PLAYLISTS: "max_playlists",
    ResourceKind.QR_CODES: "max_qr_codes",
    ResourceKind.SLIDESHOWS: "max_slideshows",
}


def resolve_limit(user: LimitOverrides, resource_kind: ResourceKind) -> int:
    """Return the effective creation ceiling for ``user``.

    A non-null per-user override replaces the tier default outright; it is never added
    to it. Raises ``KeyError`` for a kind without a limit field.
    """
    field_name = LIMIT_FIELD_BY_KIND[ResourceKind(resource_kind)]
    override: int | None = getattr(user, field_name)
    if override is not None:
        return override

    tier_limits: TierLimits = get_tier(user.subscription_tier).limits
    return int(getattr(tier_limits, field_name))


def resolve_all_limits(user: LimitOverrides) -> dict[ResourceKind, int]:
    return {kind: resolve_limit(user, kind) for kind in ResourceKind}

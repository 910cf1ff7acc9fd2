"""Default per-tier creation limits.

Changing a limit here is a deployment-time decision; nothing mutates the catalog at
runtime.
"""

from __future__ import annotations

from types import MappingProxyType

import structlog

from app.quota.types import SubscriptionTier, TierLimits

logger = structlog.get_logger(__name__)

DEFAULT_TIER_ID = "free"

SUBSCRIPTION_TIERS: MappingProxyType[str, SubscriptionTier] = MappingProxyType(
    {
        "free": SubscriptionTier(
            id="free",
            name="Free",
            limits=TierLimits(
                max_products=1,
                max_audio_files=3,
                max_videos=0,
                max_playlists=10,
                max_qr_codes=1,
                max_slideshows=0,
                can_edit_playlists=False,
            ),
        ),
        "basic": SubscriptionTier(
            id="basic",
            name="Basic",
            limits=TierLimits(
                max_products=3,
                max_audio_files=10,
                max_videos=1,
                max_playlists=25,
                max_qr_codes=3,
                max_slideshows=3,
                can_edit_playlists=False,
            ),
        ),
        "premium": SubscriptionTier(
            id="premium",
            name="Premium",
            limits=TierLimits(
                max_products=10,
                max_audio_files=20,
                max_videos=3,
                max_playlists=50,
                max_qr_codes=10,
                max_slideshows=5,
                can_edit_playlists=True,
            ),
        ),
    }
)


def get_tier(tier_id: str | None) -> SubscriptionTier:
    tier = SUBSCRIPTION_TIERS.get(tier_id or DEFAULT_TIER_ID)
    if tier is None:
        logger.warning("subscription_tier_unknown", tier_id=tier_id, fallback=DEFAULT_TIER_ID)
        return SUBSCRIPTION_TIERS[DEFAULT_TIER_ID]
    return tier


def can_edit_playlists(tier_id: str | None) -> bool:
    return get_tier(tier_id).limits.can_edit_playlists

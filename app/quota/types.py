from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResourceKind(str, Enum):
    PRODUCTS = "products"
    MEDIA = "media"
    VIDEOS = "videos"
    PLAYLISTS = "playlists"
    QR_CODES = "qr_codes"
    SLIDESHOWS = "slideshows"


@dataclass(frozen=True, slots=True)
class TierLimits:
    max_products: int
    max_audio_files: int
    max_videos: int
    max_playlists: int
    max_qr_codes: int
    max_slideshows: int
    can_edit_playlists: bool


@dataclass(frozen=True, slots=True)
class SubscriptionTier:
    id: str
    name: str
    limits: TierLimits


@dataclass(slots=True)
class QuotaDecision:
    resource_kind: ResourceKind
    tier: str
    allowed: bool
    limit: int
    current: int
    message: str | None = None


@dataclass(slots=True)
class QuotaUsageItem:
    resource_kind: ResourceKind
    limit: int
    current: int
    usage_percent: int


@dataclass(slots=True)
class QuotaSummary:
    tier: str
    can_edit_playlists: bool
    items: list[QuotaUsageItem]

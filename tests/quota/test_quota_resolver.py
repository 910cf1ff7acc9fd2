from types import SimpleNamespace

import pytest

from app.quota.resolver import resolve_all_limits, resolve_limit
from app.quota.types import ResourceKind


def _user(tier: str = "free", **overrides) -> SimpleNamespace:
    fields = {
        "subscription_tier": tier,
        "max_products": None,
        "max_audio_files": None,
        "max_videos": None,
        "max_playlists": None,
        "max_qr_codes": None,
        "max_slideshows": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_override_replaces_tier_default() -> None:
    user = _user("free", max_products=5)

    assert resolve_limit(user, ResourceKind.PRODUCTS) == 5
    assert resolve_limit(user, ResourceKind.MEDIA) == 3


def test_zero_override_is_a_limit_not_a_fallback() -> None:
    user = _user("premium", max_playlists=0)

    assert resolve_limit(user, ResourceKind.PLAYLISTS) == 0


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (ResourceKind.PRODUCTS, 10),
        (ResourceKind.MEDIA, 20),
        (ResourceKind.VIDEOS, 3),
        (ResourceKind.PLAYLISTS, 50),
        (ResourceKind.QR_CODES, 10),
        (ResourceKind.SLIDESHOWS, 5),
    ],
)
def test_premium_defaults(kind: ResourceKind, expected: int) -> None:
    assert resolve_limit(_user("premium"), kind) == expected


def test_accepts_kind_value_strings() -> None:
    assert resolve_limit(_user("basic"), "qr_codes") == 3


def test_resolve_all_limits_covers_every_kind() -> None:
    limits = resolve_all_limits(_user("basic", max_videos=7))

    assert set(limits) == set(ResourceKind)
    assert limits[ResourceKind.VIDEOS] == 7
    assert limits[ResourceKind.SLIDESHOWS] == 3

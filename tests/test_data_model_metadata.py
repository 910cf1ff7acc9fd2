from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from app.db.models import (  # noqa: F401
    ActivationCode,
    MediaFile,
    Playlist,
    Product,
    QrCode,
    RedemptionAttempt,
    Slideshow,
    User,
    UserActivationCode,
)
from app.db.models.base import Base


def test_all_tables_registered() -> None:
    expected_tables = {
        "users",
        "products",
        "media_files",
        "playlists",
        "qr_codes",
        "slideshows",
        "activation_codes",
        "user_activation_codes",
        "redemption_attempts",
    }
    assert expected_tables.issubset(set(Base.metadata.tables))


def test_activation_codes_guard_uses_count_against_max_uses() -> None:
    table = Base.metadata.tables["activation_codes"]
    checks = {
        constraint.name: str(constraint.sqltext)
        for constraint in table.constraints
        if isinstance(constraint, CheckConstraint)
    }

    assert checks["ck_activation_codes_uses_count_le_max"] == (
        "max_uses IS NULL OR uses_count <= max_uses"
    )
    assert checks["ck_activation_codes_max_uses_positive"] == "max_uses IS NULL OR max_uses > 0"
    assert table.c.code.unique is True


def test_user_activation_codes_has_single_grant_per_user_and_code() -> None:
    table = Base.metadata.tables["user_activation_codes"]
    unique_names = {
        constraint.name
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }
    assert "uq_user_activation_codes_user_code" in unique_names

    code_fk = next(iter(table.c.code_id.foreign_keys))
    assert code_fk.target_fullname == "activation_codes.id"
    assert code_fk.ondelete == "RESTRICT"


def test_owned_resource_tables_are_soft_deletable() -> None:
    for table_name in ("products", "media_files", "playlists", "qr_codes", "slideshows"):
        table = Base.metadata.tables[table_name]
        assert table.c.deleted_at.nullable is True
        assert "owner_id" in table.c


def test_user_limit_overrides_are_nullable() -> None:
    table = Base.metadata.tables["users"]
    for column_name in (
        "max_products",
        "max_audio_files",
        "max_videos",
        "max_playlists",
        "max_qr_codes",
        "max_slideshows",
    ):
        assert table.c[column_name].nullable is True

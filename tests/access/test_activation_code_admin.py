from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from app.access import service
from app.access.errors import (
    ActivationCodeNotFoundError,
    CodeCollisionError,
    CodeInUseError,
    CodeTakenError,
    ContentNotFoundError,
    InvalidCodeError,
    InvalidExpiryError,
    InvalidMaxUsesError,
    NotContentOwnerError,
)
from app.access.service import ActivationCodeService
from app.access.status import CodeStatus
from app.core.errors import ValidationFailedError
from app.db import retry

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
SESSION = SimpleNamespace()


@pytest.fixture
def created(monkeypatch) -> list[object]:
    rows: list[object] = []
    content = SimpleNamespace(id=77, owner_id=10, requires_activation_code=True)

    async def _get_live_content(session, *, content_type: str, content_id: int):
        del session, content_type
        return content if content_id == content.id else None

    async def _get_by_code(session, code: str, *, refresh: bool = False):
        del session, refresh
        return SimpleNamespace(code=code) if code == "TAKEN1" else None

    async def _list_existing_codes(session, codes):
        del session
        return set()

    async def _create_many(session, *, codes):
        del session
        for row in codes:
            row.id = len(rows) + 1
            rows.append(row)
        return codes

    monkeypatch.setattr(
        service,
        "get_settings",
        lambda: SimpleNamespace(activation_code_length=6),
    )
    monkeypatch.setattr(service.ResourcesRepo, "get_live_content", _get_live_content)
    monkeypatch.setattr(service.ActivationCodesRepo, "get_by_code", _get_by_code)
    monkeypatch.setattr(service.ActivationCodesRepo, "list_existing_codes", _list_existing_codes)
    monkeypatch.setattr(service.ActivationCodesRepo, "create_many", _create_many)
    return rows


@pytest.mark.asyncio
async def test_create_codes_generates_batch(created: list[object]) -> None:
    views = await ActivationCodeService.create_codes(
        SESSION,
        created_by_user_id=10,
        content_type="playlist",
        content_id=77,
        count=5,
        max_uses=3,
        expires_at=NOW + timedelta(days=7),
        now_utc=NOW,
    )

    assert len(views) == 5
    assert len({view.code for view in views}) == 5
    assert all(len(view.code) == 6 for view in views)
    assert all(view.uses_count == 0 for view in views)
    assert all(view.max_uses == 3 for view in views)
    assert all(view.status is CodeStatus.ACTIVE for view in views)
    assert len(created) == 5


@pytest.mark.asyncio
async def test_create_codes_accepts_custom_code(created: list[object]) -> None:
    views = await ActivationCodeService.create_codes(
        SESSION,
        created_by_user_id=10,
        content_type="playlist",
        content_id=77,
        code="  ABC123 ",
        now_utc=NOW,
    )

    assert [view.code for view in views] == ["ABC123"]
    assert views[0].max_uses is None


@pytest.mark.parametrize(
    ("kwargs", "error_cls"),
    [
        ({"count": 0}, ValidationFailedError),
        ({"count": 101}, ValidationFailedError),
        ({"count": 2, "code": "ABC123"}, ValidationFailedError),
        ({"max_uses": 0}, InvalidMaxUsesError),
        ({"max_uses": -4}, InvalidMaxUsesError),
        ({"expires_at": NOW - timedelta(seconds=1)}, InvalidExpiryError),
        ({"code": "no spaces allowed"}, InvalidCodeError),
        ({"code": "TAKEN1"}, CodeTakenError),
        ({"content_id": 999}, ContentNotFoundError),
        ({"created_by_user_id": 11}, NotContentOwnerError),
    ],
)
@pytest.mark.asyncio
async def test_create_codes_rejects_invalid_requests(
    created: list[object],
    kwargs: dict[str, object],
    error_cls: type[Exception],
) -> None:
    params: dict[str, object] = {
        "created_by_user_id": 10,
        "content_type": "playlist",
        "content_id": 77,
        "now_utc": NOW,
    }
    params.update(kwargs)

    with pytest.raises(error_cls):
        await ActivationCodeService.create_codes(SESSION, **params)

    assert created == []


def _integrity_error(sqlstate: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, SimpleNamespace(sqlstate=sqlstate))


def _lose_insert_race(monkeypatch, sqlstate: str = "23505") -> None:
    async def _create_many(session, *, codes):
        raise _integrity_error(sqlstate)

    monkeypatch.setattr(service.ActivationCodesRepo, "create_many", _create_many)


@pytest.mark.parametrize(
    ("kwargs", "error_cls"),
    [
        ({"code": "SUMMER24"}, CodeTakenError),
        ({"count": 3}, CodeCollisionError),
    ],
)
@pytest.mark.asyncio
async def test_create_codes_lost_insert_race_is_typed(
    monkeypatch,
    created: list[object],
    kwargs: dict[str, object],
    error_cls: type[Exception],
) -> None:
    _lose_insert_race(monkeypatch)

    with pytest.raises(error_cls):
        await ActivationCodeService.create_codes(
            SESSION,
            created_by_user_id=10,
            content_type="playlist",
            content_id=77,
            now_utc=NOW,
            **kwargs,
        )


@pytest.mark.asyncio
async def test_create_codes_other_integrity_errors_propagate(
    monkeypatch,
    created: list[object],
) -> None:
    _lose_insert_race(monkeypatch, sqlstate="23503")

    with pytest.raises(IntegrityError):
        await ActivationCodeService.create_codes(
            SESSION,
            created_by_user_id=10,
            content_type="playlist",
            content_id=77,
            now_utc=NOW,
        )


class _FakeTransaction:
    async def __aenter__(self) -> object:
        return SimpleNamespace()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.mark.asyncio
async def test_create_codes_with_retry_redraws_collided_batch(
    monkeypatch,
    created: list[object],
) -> None:
    inserts: list[list[str]] = []

    async def _create_many(session, *, codes):
        inserts.append([row.code for row in codes])
        if len(inserts) == 1:
            raise _integrity_error("23505")
        for index, row in enumerate(codes, start=1):
            row.id = index
        return codes

    monkeypatch.setattr(
        service,
        "get_settings",
        lambda: SimpleNamespace(activation_code_length=6, redeem_conflict_max_attempts=3),
    )
    monkeypatch.setattr(retry, "SessionLocal", SimpleNamespace(begin=lambda: _FakeTransaction()))
    monkeypatch.setattr(service.ActivationCodesRepo, "create_many", _create_many)

    views = await ActivationCodeService.create_codes_with_retry(
        created_by_user_id=10,
        content_type="playlist",
        content_id=77,
        count=2,
        now_utc=NOW,
    )

    assert len(inserts) == 2
    assert [view.code for view in views] == inserts[1]


@pytest.mark.asyncio
async def test_create_codes_with_retry_keeps_custom_code_taken(
    monkeypatch,
    created: list[object],
) -> None:
    _lose_insert_race(monkeypatch)
    monkeypatch.setattr(
        service,
        "get_settings",
        lambda: SimpleNamespace(activation_code_length=6, redeem_conflict_max_attempts=3),
    )
    monkeypatch.setattr(retry, "SessionLocal", SimpleNamespace(begin=lambda: _FakeTransaction()))

    with pytest.raises(CodeTakenError):
        await ActivationCodeService.create_codes_with_retry(
            created_by_user_id=10,
            content_type="playlist",
            content_id=77,
            code="SUMMER24",
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_get_with_owner_hides_foreign_codes(monkeypatch) -> None:
    lookups: list[tuple[int, int]] = []

    async def _get_owned_by_id(session, code_id: int, *, owner_id: int):
        lookups.append((code_id, owner_id))
        return None

    monkeypatch.setattr(service.ActivationCodesRepo, "get_owned_by_id", _get_owned_by_id)

    with pytest.raises(ActivationCodeNotFoundError):
        await ActivationCodeService.get(SESSION, code_id=5, owner_id=11, now_utc=NOW)

    assert lookups == [(5, 11)]


def _code_row(**overrides) -> SimpleNamespace:
    fields = {
        "id": 5,
        "code": "ABC123",
        "content_id": 77,
        "content_type": "playlist",
        "max_uses": 3,
        "uses_count": 2,
        "expires_at": None,
        "is_active": True,
        "created_at": NOW - timedelta(days=1),
        "updated_at": NOW - timedelta(days=1),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def code_row(monkeypatch) -> SimpleNamespace:
    row = _code_row()

    async def _get_for_update(session, code_id: int):
        del session
        return row if code_id == row.id else None

    monkeypatch.setattr(service.ActivationCodesRepo, "get_by_id_for_update", _get_for_update)
    return row


@pytest.mark.asyncio
async def test_update_toggles_and_restores_status(code_row: SimpleNamespace) -> None:
    disabled = await ActivationCodeService.update(
        SESSION, code_id=5, is_active=False, now_utc=NOW
    )
    assert disabled.status is CodeStatus.DISABLED

    enabled = await ActivationCodeService.update(SESSION, code_id=5, is_active=True, now_utc=NOW)
    assert enabled.status is CodeStatus.ACTIVE
    assert code_row.updated_at == NOW


@pytest.mark.asyncio
async def test_update_unset_fields_are_left_alone(code_row: SimpleNamespace) -> None:
    code_row.expires_at = NOW + timedelta(days=1)

    view = await ActivationCodeService.update(SESSION, code_id=5, max_uses=None, now_utc=NOW)

    assert view.max_uses is None
    assert view.expires_at == NOW + timedelta(days=1)


@pytest.mark.asyncio
async def test_update_expiry_in_the_past_expires_code(code_row: SimpleNamespace) -> None:
    view = await ActivationCodeService.update(
        SESSION,
        code_id=5,
        expires_at=NOW - timedelta(minutes=5),
        now_utc=NOW,
    )
    assert view.status is CodeStatus.EXPIRED


@pytest.mark.asyncio
async def test_update_lowering_max_uses_to_uses_count_exhausts(code_row: SimpleNamespace) -> None:
    view = await ActivationCodeService.update(SESSION, code_id=5, max_uses=2, now_utc=NOW)
    assert view.status is CodeStatus.EXHAUSTED


@pytest.mark.parametrize("max_uses", [0, 1])
@pytest.mark.asyncio
async def test_update_rejects_max_uses_below_uses_count(
    code_row: SimpleNamespace,
    max_uses: int,
) -> None:
    with pytest.raises(InvalidMaxUsesError):
        await ActivationCodeService.update(SESSION, code_id=5, max_uses=max_uses, now_utc=NOW)
    assert code_row.max_uses == 3


@pytest.mark.asyncio
async def test_update_missing_code(code_row: SimpleNamespace) -> None:
    with pytest.raises(ActivationCodeNotFoundError):
        await ActivationCodeService.update(SESSION, code_id=404, is_active=False, now_utc=NOW)


@pytest.mark.asyncio
async def test_delete_refuses_code_referenced_by_grants(
    monkeypatch,
    code_row: SimpleNamespace,
) -> None:
    deleted: list[int] = []

    async def _count_for_code(session, *, code_id: int):
        del session, code_id
        return 1

    async def _delete(session, *, code_id: int):
        del session
        deleted.append(code_id)
        return 1

    monkeypatch.setattr(service.UserActivationCodesRepo, "count_for_code", _count_for_code)
    monkeypatch.setattr(service.ActivationCodesRepo, "delete", _delete)

    with pytest.raises(CodeInUseError):
        await ActivationCodeService.delete(SESSION, code_id=5)
    assert deleted == []


@pytest.mark.asyncio
async def test_delete_unreferenced_code(monkeypatch, code_row: SimpleNamespace) -> None:
    deleted: list[int] = []

    async def _count_for_code(session, *, code_id: int):
        del session, code_id
        return 0

    async def _delete(session, *, code_id: int):
        del session
        deleted.append(code_id)
        return 1

    monkeypatch.setattr(service.UserActivationCodesRepo, "count_for_code", _count_for_code)
    monkeypatch.setattr(service.ActivationCodesRepo, "delete", _delete)

    await ActivationCodeService.delete(SESSION, code_id=5)
    assert deleted == [5]

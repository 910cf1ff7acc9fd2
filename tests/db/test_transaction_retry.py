from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DBAPIError

from app.access.errors import ActivationCodeNotFoundError, RedeemConflictError
from app.core.errors import ConflictError
from app.db import retry


class _FakeTransaction:
    def __init__(self, sessions: list[object]) -> None:
        self._sessions = sessions

    async def __aenter__(self) -> object:
        session = object()
        self._sessions.append(session)
        return session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


def _db_error(sqlstate: str) -> DBAPIError:
    return DBAPIError("INSERT ...", {}, SimpleNamespace(sqlstate=sqlstate))


@pytest.fixture
def sessions(monkeypatch) -> list[object]:
    opened: list[object] = []
    monkeypatch.setattr(
        retry,
        "SessionLocal",
        SimpleNamespace(begin=lambda: _FakeTransaction(opened)),
    )
    return opened


def test_retryable_errors() -> None:
    assert retry.is_retryable_db_error(ConflictError()) is True
    assert retry.is_retryable_db_error(_db_error("23505")) is True
    assert retry.is_retryable_db_error(_db_error("40001")) is True
    assert retry.is_retryable_db_error(_db_error("40P01")) is True
    assert retry.is_retryable_db_error(_db_error("23503")) is False
    assert retry.is_retryable_db_error(ValueError("boom")) is False


@pytest.mark.asyncio
async def test_reruns_operation_in_fresh_transaction(sessions: list[object]) -> None:
    failures = [_db_error("23505"), ConflictError()]

    async def _operation(session) -> str:
        if failures:
            raise failures.pop(0)
        return "done"

    result = await retry.run_in_transaction(
        _operation,
        operation_name="test_operation",
        max_attempts=3,
    )

    assert result == "done"
    assert len(sessions) == 3
    assert len(set(map(id, sessions))) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_conflict_error(sessions: list[object]) -> None:
    async def _operation(session) -> None:
        raise _db_error("40001")

    with pytest.raises(RedeemConflictError):
        await retry.run_in_transaction(
            _operation,
            operation_name="test_operation",
            max_attempts=2,
            conflict_error=RedeemConflictError,
        )
    assert len(sessions) == 2


@pytest.mark.asyncio
async def test_terminal_errors_are_not_retried(sessions: list[object]) -> None:
    async def _operation(session) -> None:
        raise ActivationCodeNotFoundError

    with pytest.raises(ActivationCodeNotFoundError):
        await retry.run_in_transaction(
            _operation,
            operation_name="test_operation",
            max_attempts=3,
        )
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_non_retryable_db_error_propagates(sessions: list[object]) -> None:
    async def _operation(session) -> None:
        raise _db_error("23503")

    with pytest.raises(DBAPIError):
        await retry.run_in_transaction(
            _operation,
            operation_name="test_operation",
            max_attempts=3,
        )
    assert len(sessions) == 1

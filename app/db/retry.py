from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError
from app.db.session import SessionLocal

logger = structlog.get_logger(__name__)

T = TypeVar("T")

UNIQUE_VIOLATION = "23505"
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"
RETRYABLE_SQLSTATES = frozenset({UNIQUE_VIOLATION, SERIALIZATION_FAILURE, DEADLOCK_DETECTED})


def extract_sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return str(sqlstate) if sqlstate is not None else None


def is_retryable_db_error(exc: BaseException) -> bool:
    if isinstance(exc, ConflictError):
        return True
    if isinstance(exc, DBAPIError):
        return extract_sqlstate(exc) in RETRYABLE_SQLSTATES
    return False


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation_name: str,
    max_attempts: int,
    conflict_error: Callable[[], ConflictError] = ConflictError,
) -> T:
    """Run ``operation`` in a fresh transaction, re-running it from scratch on conflicts.

    Terminal domain errors propagate on the first attempt. After ``max_attempts`` lost
    races the conflict surfaces as ``conflict_error()``.
    """
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            async with SessionLocal.begin() as session:
                return await operation(session)
        except (ConflictError, DBAPIError) as exc:
            if not is_retryable_db_error(exc):
                raise
            logger.info(
                "transaction_conflict_retry",
                operation=operation_name,
                attempt=attempt,
                max_attempts=attempts,
                error_type=type(exc).__name__,
            )
            if attempt == attempts:
                logger.warning(
                    "transaction_conflict_exhausted",
                    operation=operation_name,
                    max_attempts=attempts,
                )
                raise conflict_error() from exc

    raise conflict_error()

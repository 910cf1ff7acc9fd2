from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Protocol


class CodeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"


class GrantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"


class CodeState(Protocol):
    is_active: bool
    expires_at: datetime | None
    max_uses: int | None
    uses_count: int


def effective_status(
    *,
    is_active: bool,
    expires_at: datetime | None,
    max_uses: int | None,
    uses_count: int,
    now_utc: datetime,
) -> CodeStatus:
    """Derive the status of an activation code. Never stored.

    Precedence is DISABLED > EXPIRED > EXHAUSTED > ACTIVE. A code expiring exactly at
    ``now_utc`` is still redeemable.
    """
    if not is_active:
        return CodeStatus.DISABLED
    if expires_at is not None and now_utc > expires_at:
        return CodeStatus.EXPIRED
    if max_uses is not None and uses_count >= max_uses:
        return CodeStatus.EXHAUSTED
    return CodeStatus.ACTIVE


def code_status(code: CodeState, *, now_utc: datetime) -> CodeStatus:
    return effective_status(
        is_active=code.is_active,
        expires_at=code.expires_at,
        max_uses=code.max_uses,
        uses_count=code.uses_count,
        now_utc=now_utc,
    )


def grant_status(*, is_active: bool, expires_at: datetime | None, now_utc: datetime) -> GrantStatus:
    if not is_active:
        return GrantStatus.INACTIVE
    if expires_at is not None and now_utc > expires_at:
        return GrantStatus.EXPIRED
    return GrantStatus.ACTIVE

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.access.status import CodeStatus, GrantStatus


@dataclass(slots=True)
class ActivationCodeView:
    id: int
    code: str
    content_id: int
    content_type: str
    max_uses: int | None
    uses_count: int
    expires_at: datetime | None
    is_active: bool
    status: CodeStatus
    created_at: datetime


@dataclass(slots=True)
class GrantView:
    id: int
    user_id: int
    code_id: int
    content_id: int
    content_type: str
    added_at: datetime
    expires_at: datetime | None
    is_active: bool
    status: GrantStatus


@dataclass(slots=True)
class RedeemResult:
    grant: GrantView
    code_id: int
    uses_count: int
    max_uses: int | None
    idempotent_replay: bool


@dataclass(slots=True)
class AccessDecision:
    content_type: str
    content_id: int
    user_id: int
    has_access: bool
    requires_activation_code: bool
    grant_id: int | None = None

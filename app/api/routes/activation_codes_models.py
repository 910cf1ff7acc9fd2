from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.access.status import CodeStatus, GrantStatus
from app.access.types import ActivationCodeView, GrantView, RedeemResult

ContentType = Literal["playlist", "slideshow"]


class ActivationCodeCreateRequest(BaseModel):
    content_type: ContentType
    content_id: int = Field(gt=0)
    count: int = Field(default=1, ge=1, le=100)
    code: str | None = Field(default=None, min_length=1, max_length=32)
    max_uses: int | None = None
    expires_at: datetime | None = None


class ActivationCodeUpdateRequest(BaseModel):
    is_active: bool | None = None
    max_uses: int | None = None
    expires_at: datetime | None = None


class ActivationCodeResponse(BaseModel):
    id: int
    code: str
    content_id: int
    content_type: str
    max_uses: int | None = None
    uses_count: int = Field(ge=0)
    expires_at: datetime | None = None
    is_active: bool
    status: CodeStatus
    created_at: datetime


class ActivationCodeListResponse(BaseModel):
    codes: list[ActivationCodeResponse]


class RedeemRequest(BaseModel):
    user_id: int = Field(gt=0)


class GrantResponse(BaseModel):
    id: int
    user_id: int
    code_id: int
    content_id: int
    content_type: str
    added_at: datetime
    expires_at: datetime | None = None
    is_active: bool
    status: GrantStatus


class GrantListResponse(BaseModel):
    grants: list[GrantResponse]


class GrantUpdateRequest(BaseModel):
    is_active: bool


class RedeemResponse(BaseModel):
    grant: GrantResponse
    code_id: int
    uses_count: int = Field(ge=0)
    max_uses: int | None = None
    idempotent_replay: bool


class AccessResponse(BaseModel):
    content_type: str
    content_id: int
    user_id: int
    has_access: bool
    requires_activation_code: bool
    grant_id: int | None = None


def code_as_response(view: ActivationCodeView) -> ActivationCodeResponse:
    return ActivationCodeResponse(
        id=view.id,
        code=view.code,
        content_id=view.content_id,
        content_type=view.content_type,
        max_uses=view.max_uses,
        uses_count=view.uses_count,
        expires_at=view.expires_at,
        is_active=view.is_active,
        status=view.status,
        created_at=view.created_at,
    )


def grant_as_response(view: GrantView) -> GrantResponse:
    return GrantResponse(
        id=view.id,
        user_id=view.user_id,
        code_id=view.code_id,
        content_id=view.content_id,
        content_type=view.content_type,
        added_at=view.added_at,
        expires_at=view.expires_at,
        is_active=view.is_active,
        status=view.status,
    )


def redeem_as_response(result: RedeemResult) -> RedeemResponse:
    return RedeemResponse(
        grant=grant_as_response(result.grant),
        code_id=result.code_id,
        uses_count=result.uses_count,
        max_uses=result.max_uses,
        idempotent_replay=result.idempotent_replay,
    )

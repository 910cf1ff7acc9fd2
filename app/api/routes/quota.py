from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.core.errors import EngineError
from app.db.session import SessionLocal
from app.quota.service import QuotaService
from app.quota.types import ResourceKind

from .helpers import get_current_user_id, to_http_exception

router = APIRouter(tags=["quota"])


class CanCreateResponse(BaseModel):
    resource_kind: ResourceKind
    tier: str
    allowed: bool
    limit: int = Field(ge=0)
    current: int = Field(ge=0)
    message: str | None = None


class QuotaUsageResponse(BaseModel):
    resource_kind: ResourceKind
    limit: int = Field(ge=0)
    current: int = Field(ge=0)
    usage_percent: int = Field(ge=0, le=100)


class QuotaSummaryResponse(BaseModel):
    tier: str
    can_edit_playlists: bool
    items: list[QuotaUsageResponse]


@router.get("/quota/summary", response_model=QuotaSummaryResponse)
async def get_quota_summary(
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> QuotaSummaryResponse:
    try:
        async with SessionLocal.begin() as session:
            summary = await QuotaService.summary(session, user_id=user_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return QuotaSummaryResponse(
        tier=summary.tier,
        can_edit_playlists=summary.can_edit_playlists,
        items=[
            QuotaUsageResponse(
                resource_kind=item.resource_kind,
                limit=item.limit,
                current=item.current,
                usage_percent=item.usage_percent,
            )
            for item in summary.items
        ],
    )


@router.get("/quota/{resource_kind}/can-create", response_model=CanCreateResponse)
async def can_create(
    resource_kind: ResourceKind,
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> CanCreateResponse:
    try:
        async with SessionLocal.begin() as session:
            decision = await QuotaService.can_create(
                session,
                user_id=user_id,
                resource_kind=resource_kind,
            )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return CanCreateResponse(
        resource_kind=decision.resource_kind,
        tier=decision.tier,
        allowed=decision.allowed,
        limit=decision.limit,
        current=decision.current,
        message=decision.message,
    )

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.access.ledger import EntitlementLedger
from app.core.errors import EngineError
from app.db.session import SessionLocal

from .activation_codes_models import (
    AccessResponse,
    ContentType,
    GrantListResponse,
    GrantResponse,
    GrantUpdateRequest,
    grant_as_response,
)
from .helpers import (
    assert_internal_access,
    assert_self_or_internal,
    get_current_user_id,
    get_optional_user_id,
    to_http_exception,
)

router = APIRouter(tags=["access"])


@router.get("/users/{user_id}/activation-codes", response_model=GrantListResponse)
async def list_user_grants(
    user_id: int,
    request: Request,
    caller_id: Annotated[int | None, Depends(get_optional_user_id)],
) -> GrantListResponse:
    assert_self_or_internal(request, caller_id=caller_id, user_id=user_id)
    try:
        async with SessionLocal.begin() as session:
            views = await EntitlementLedger.list_for_user(session, user_id=user_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return GrantListResponse(grants=[grant_as_response(view) for view in views])


@router.patch("/user-activation-codes/{grant_id}", response_model=GrantResponse)
async def update_user_grant(
    grant_id: int,
    payload: GrantUpdateRequest,
    request: Request,
) -> GrantResponse:
    assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            view = await EntitlementLedger.set_active(
                session,
                grant_id=grant_id,
                is_active=payload.is_active,
            )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return grant_as_response(view)


@router.delete("/user-activation-codes/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user_grant(
    grant_id: int,
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> Response:
    try:
        async with SessionLocal.begin() as session:
            await EntitlementLedger.remove(session, grant_id=grant_id, user_id=user_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/access/{content_type}/{content_id}", response_model=AccessResponse)
async def check_access(
    content_type: ContentType,
    content_id: int,
    request: Request,
    user_id: Annotated[int, Query(gt=0)],
    caller_id: Annotated[int | None, Depends(get_optional_user_id)],
) -> AccessResponse:
    assert_self_or_internal(request, caller_id=caller_id, user_id=user_id)
    try:
        async with SessionLocal.begin() as session:
            decision = await EntitlementLedger.check_access(
                session,
                user_id=user_id,
                content_type=content_type,
                content_id=content_id,
            )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return AccessResponse(
        content_type=decision.content_type,
        content_id=decision.content_id,
        user_id=decision.user_id,
        has_access=decision.has_access,
        requires_activation_code=decision.requires_activation_code,
        grant_id=decision.grant_id,
    )

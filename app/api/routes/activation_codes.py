from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.access.service import ActivationCodeService
from app.core.errors import EngineError
from app.db.session import SessionLocal

from .activation_codes_models import (
    ActivationCodeCreateRequest,
    ActivationCodeListResponse,
    ActivationCodeResponse,
    ActivationCodeUpdateRequest,
    ContentType,
    RedeemRequest,
    RedeemResponse,
    code_as_response,
    redeem_as_response,
)
from .helpers import (
    as_utc,
    assert_internal_access,
    code_reader_scope,
    get_current_user_id,
    get_optional_user_id,
    to_http_exception,
)

router = APIRouter(tags=["activation-codes"])


@router.post(
    "/activation-codes",
    response_model=ActivationCodeListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_activation_codes(
    payload: ActivationCodeCreateRequest,
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> ActivationCodeListResponse:
    try:
        views = await ActivationCodeService.create_codes_with_retry(
            created_by_user_id=user_id,
            content_type=payload.content_type,
            content_id=payload.content_id,
            count=payload.count,
            code=payload.code,
            max_uses=payload.max_uses,
            expires_at=as_utc(payload.expires_at),
        )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return ActivationCodeListResponse(codes=[code_as_response(view) for view in views])


@router.get("/activation-codes", response_model=ActivationCodeListResponse)
async def list_activation_codes(
    request: Request,
    caller_id: Annotated[int | None, Depends(get_optional_user_id)],
    content_type: Annotated[ContentType | None, Query()] = None,
    content_id: Annotated[int | None, Query(gt=0)] = None,
) -> ActivationCodeListResponse:
    owner_id = code_reader_scope(request, caller_id=caller_id)
    async with SessionLocal.begin() as session:
        views = await ActivationCodeService.list_codes(
            session,
            content_type=content_type,
            content_id=content_id,
            owner_id=owner_id,
        )
    return ActivationCodeListResponse(codes=[code_as_response(view) for view in views])


@router.get("/activation-codes/{code_id}", response_model=ActivationCodeResponse)
async def get_activation_code(
    code_id: int,
    request: Request,
    caller_id: Annotated[int | None, Depends(get_optional_user_id)],
) -> ActivationCodeResponse:
    owner_id = code_reader_scope(request, caller_id=caller_id)
    try:
        async with SessionLocal.begin() as session:
            view = await ActivationCodeService.get(session, code_id=code_id, owner_id=owner_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return code_as_response(view)


@router.patch("/activation-codes/{code_id}", response_model=ActivationCodeResponse)
async def update_activation_code(
    code_id: int,
    payload: ActivationCodeUpdateRequest,
    request: Request,
) -> ActivationCodeResponse:
    assert_internal_access(request)

    # Explicit null clears max_uses / expires_at; an absent field leaves it alone.
    changes: dict[str, Any] = {"is_active": payload.is_active}
    if "max_uses" in payload.model_fields_set:
        changes["max_uses"] = payload.max_uses
    if "expires_at" in payload.model_fields_set:
        changes["expires_at"] = as_utc(payload.expires_at)

    try:
        async with SessionLocal.begin() as session:
            view = await ActivationCodeService.update(session, code_id=code_id, **changes)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return code_as_response(view)


@router.delete("/activation-codes/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activation_code(code_id: int, request: Request) -> Response:
    assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            await ActivationCodeService.delete(session, code_id=code_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/activation-codes/{code}/redeem", response_model=RedeemResponse)
async def redeem_activation_code(code: str, payload: RedeemRequest) -> RedeemResponse:
    try:
        result = await ActivationCodeService.redeem_with_retry(code=code, user_id=payload.user_id)
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return redeem_as_response(result)

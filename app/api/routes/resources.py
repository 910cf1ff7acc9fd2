from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from app.core.errors import EngineError
from app.db.session import SessionLocal
from app.quota.types import ResourceKind
from app.resources.service import ResourceService

from .helpers import get_current_user_id, to_http_exception

router = APIRouter(tags=["resources"])


class ResourceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    requires_activation_code: bool = False


class ResourceResponse(BaseModel):
    id: int
    resource_kind: ResourceKind
    owner_id: int
    name: str
    created_at: datetime
    limit: int
    current: int


@router.post(
    "/resources/{resource_kind}",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(
    resource_kind: ResourceKind,
    payload: ResourceCreateRequest,
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> ResourceResponse:
    try:
        async with SessionLocal.begin() as session:
            created = await ResourceService.create(
                session,
                owner_id=user_id,
                resource_kind=resource_kind,
                name=payload.name,
                requires_activation_code=payload.requires_activation_code,
            )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return ResourceResponse(
        id=created.id,
        resource_kind=created.resource_kind,
        owner_id=created.owner_id,
        name=created.name,
        created_at=created.created_at,
        limit=created.limit,
        current=created.current,
    )


@router.delete(
    "/resources/{resource_kind}/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_resource(
    resource_kind: ResourceKind,
    resource_id: int,
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> Response:
    try:
        async with SessionLocal.begin() as session:
            await ResourceService.delete(
                session,
                owner_id=user_id,
                resource_kind=resource_kind,
                resource_id=resource_id,
            )
    except EngineError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

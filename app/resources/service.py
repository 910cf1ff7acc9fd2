from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationFailedError
from app.db.repo.resources_repo import ResourcesRepo
from app.quota.service import QuotaService
from app.quota.types import ResourceKind
from app.resources.errors import ResourceNotFoundError

logger = structlog.get_logger(__name__)

GATEABLE_KINDS = frozenset({ResourceKind.PLAYLISTS, ResourceKind.SLIDESHOWS})


@dataclass(slots=True)
class CreatedResource:
    id: int
    resource_kind: ResourceKind
    owner_id: int
    name: str
    created_at: datetime
    limit: int
    current: int


class ResourceService:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
        name: str,
        requires_activation_code: bool = False,
        now_utc: datetime | None = None,
    ) -> CreatedResource:
        """Create an owned resource behind the quota reservation.

        Reservation and insert share ``session``'s transaction, so the advisory lock is
        held until the new row is committed.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        kind = ResourceKind(resource_kind)
        if requires_activation_code and kind not in GATEABLE_KINDS:
            raise ValidationFailedError(
                "Only playlists and slideshows can require an activation code."
            )
        decision = await QuotaService.reserve(session, user_id=owner_id, resource_kind=kind)
        row = await ResourcesRepo.create(
            session,
            owner_id=owner_id,
            resource_kind=kind,
            name=name,
            now_utc=now_utc,
            requires_activation_code=requires_activation_code,
        )
        logger.info(
            "resource_created",
            owner_id=owner_id,
            resource_kind=kind.value,
            resource_id=row.id,
            limit=decision.limit,
            current=decision.current + 1,
        )
        return CreatedResource(
            id=row.id,
            resource_kind=kind,
            owner_id=owner_id,
            name=row.name,
            created_at=row.created_at,
            limit=decision.limit,
            current=decision.current + 1,
        )

    @staticmethod
    async def delete(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
        resource_id: int,
        now_utc: datetime | None = None,
    ) -> None:
        now_utc = now_utc or datetime.now(timezone.utc)
        kind = ResourceKind(resource_kind)
        row = await ResourcesRepo.get_live_for_update(
            session,
            owner_id=owner_id,
            resource_kind=kind,
            resource_id=resource_id,
        )
        if row is None:
            raise ResourceNotFoundError

        row.deleted_at = now_utc
        logger.info(
            "resource_deleted",
            owner_id=owner_id,
            resource_kind=kind.value,
            resource_id=resource_id,
        )

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.errors import AccessUserNotFoundError, ContentNotFoundError, GrantNotFoundError
from app.access.status import grant_status
from app.access.types import AccessDecision, GrantView
from app.db.models.user_activation_codes import UserActivationCode
from app.db.repo.resources_repo import ResourcesRepo
from app.db.repo.user_activation_codes_repo import UserActivationCodesRepo
from app.db.repo.users_repo import UsersRepo

logger = structlog.get_logger(__name__)


def as_grant_view(grant: UserActivationCode, *, now_utc: datetime) -> GrantView:
    return GrantView(
        id=grant.id,
        user_id=grant.user_id,
        code_id=grant.code_id,
        content_id=grant.content_id,
        content_type=grant.content_type,
        added_at=grant.added_at,
        expires_at=grant.expires_at,
        is_active=grant.is_active,
        status=grant_status(
            is_active=grant.is_active,
            expires_at=grant.expires_at,
            now_utc=now_utc,
        ),
    )


class EntitlementLedger:
    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime | None = None,
    ) -> list[GrantView]:
        now_utc = now_utc or datetime.now(timezone.utc)
        if await UsersRepo.get_by_id(session, user_id) is None:
            raise AccessUserNotFoundError

        grants = await UserActivationCodesRepo.list_for_user(session, user_id=user_id)
        return [as_grant_view(grant, now_utc=now_utc) for grant in grants]

    @staticmethod
    async def check_access(
        session: AsyncSession,
        *,
        user_id: int,
        content_type: str,
        content_id: int,
        now_utc: datetime | None = None,
    ) -> AccessDecision:
        now_utc = now_utc or datetime.now(timezone.utc)
        content = await ResourcesRepo.get_live_content(
            session,
            content_type=content_type,
            content_id=content_id,
        )
        if content is None:
            raise ContentNotFoundError

        decision = AccessDecision(
            content_type=content_type,
            content_id=content_id,
            user_id=user_id,
            has_access=True,
            requires_activation_code=content.requires_activation_code,
        )
        if not content.requires_activation_code or content.owner_id == user_id:
            return decision

        grant = await UserActivationCodesRepo.get_valid_for_content(
            session,
            user_id=user_id,
            content_type=content_type,
            content_id=content_id,
            now_utc=now_utc,
        )
        decision.has_access = grant is not None
        decision.grant_id = grant.id if grant is not None else None
        return decision

    @staticmethod
    async def set_active(
        session: AsyncSession,
        *,
        grant_id: int,
        is_active: bool,
        now_utc: datetime | None = None,
    ) -> GrantView:
        """Admin toggle of a single grant. The activation code itself is left untouched."""
        now_utc = now_utc or datetime.now(timezone.utc)
        grant = await UserActivationCodesRepo.get_by_id_for_update(session, grant_id)
        if grant is None:
            raise GrantNotFoundError

        if grant.is_active != is_active:
            grant.is_active = is_active
            grant.updated_at = now_utc
            logger.info(
                "access_grant_toggled",
                grant_id=grant.id,
                user_id=grant.user_id,
                code_id=grant.code_id,
                is_active=is_active,
            )
        return as_grant_view(grant, now_utc=now_utc)

    @staticmethod
    async def remove(session: AsyncSession, *, grant_id: int, user_id: int) -> None:
        grant = await UserActivationCodesRepo.get_by_id_for_update(session, grant_id)
        # Someone else's grant is reported as missing.
        if grant is None or grant.user_id != user_id:
            raise GrantNotFoundError

        await UserActivationCodesRepo.delete(session, grant_id=grant.id)
        logger.info(
            "access_grant_removed",
            grant_id=grant.id,
            user_id=user_id,
            code_id=grant.code_id,
            content_type=grant.content_type,
            content_id=grant.content_id,
        )

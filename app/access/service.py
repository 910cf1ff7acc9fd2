from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Final

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.attempts import AttemptResult, record_attempt, record_failed_attempt
from app.access.codes import generate_codes, hash_code, is_valid_custom_code, normalize_code
from app.access.errors import (
    AccessUserNotFoundError,
    ActivationCodeNotFoundError,
    CodeCollisionError,
    CodeDisabledError,
    CodeExhaustedError,
    CodeExpiredError,
    CodeInUseError,
    CodeTakenError,
    ContentNotFoundError,
    GrantRevokedError,
    InvalidCodeError,
    InvalidExpiryError,
    InvalidMaxUsesError,
    NotContentOwnerError,
    RedeemConflictError,
    RedeemRateLimitedError,
)
from app.access.ledger import as_grant_view
from app.access.rate_limit import enforce_rate_limit
from app.access.status import CodeStatus, code_status
from app.access.types import ActivationCodeView, RedeemResult
from app.core.config import get_settings
from app.core.errors import PolicyDeniedError, ValidationFailedError
from app.db.models.activation_codes import ActivationCode
from app.db.models.user_activation_codes import UserActivationCode
from app.db.repo.activation_codes_repo import ActivationCodesRepo
from app.db.repo.resources_repo import ResourcesRepo
from app.db.repo.user_activation_codes_repo import UserActivationCodesRepo
from app.db.repo.users_repo import UsersRepo
from app.db.retry import UNIQUE_VIOLATION, extract_sqlstate, run_in_transaction

logger = structlog.get_logger(__name__)

MAX_CODES_PER_BATCH = 100
CODE_GENERATION_ROUNDS = 5

_STATUS_FAILURES: dict[CodeStatus, tuple[AttemptResult, type[PolicyDeniedError]]] = {
    CodeStatus.DISABLED: (AttemptResult.DISABLED, CodeDisabledError),
    CodeStatus.EXPIRED: (AttemptResult.EXPIRED, CodeExpiredError),
    CodeStatus.EXHAUSTED: (AttemptResult.EXHAUSTED, CodeExhaustedError),
}


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()


def as_code_view(code: ActivationCode, *, now_utc: datetime) -> ActivationCodeView:
    return ActivationCodeView(
        id=code.id,
        code=code.code,
        content_id=code.content_id,
        content_type=code.content_type,
        max_uses=code.max_uses,
        uses_count=code.uses_count,
        expires_at=code.expires_at,
        is_active=code.is_active,
        status=code_status(code, now_utc=now_utc),
        created_at=code.created_at,
    )


def _validate_max_uses(max_uses: int | None, *, uses_count: int = 0) -> None:
    if max_uses is not None and (max_uses <= 0 or max_uses < uses_count):
        raise InvalidMaxUsesError


class ActivationCodeService:
    @staticmethod
    async def _pick_new_codes(session: AsyncSession, *, count: int, length: int) -> list[str]:
        picked: list[str] = []
        seen: set[str] = set()
        for _ in range(CODE_GENERATION_ROUNDS):
            candidates = generate_codes(
                count=count - len(picked),
                length=length,
                existing_codes=seen,
            )
            taken = await ActivationCodesRepo.list_existing_codes(session, candidates)
            picked.extend(code for code in candidates if code not in taken)
            if len(picked) == count:
                return picked
        raise RuntimeError("unable to generate unique activation codes")

    @staticmethod
    async def create_codes(
        session: AsyncSession,
        *,
        created_by_user_id: int,
        content_type: str,
        content_id: int,
        count: int = 1,
        code: str | None = None,
        max_uses: int | None = None,
        expires_at: datetime | None = None,
        now_utc: datetime | None = None,
    ) -> list[ActivationCodeView]:
        now_utc = now_utc or datetime.now(timezone.utc)
        if not 1 <= count <= MAX_CODES_PER_BATCH:
            raise ValidationFailedError(f"count must be between 1 and {MAX_CODES_PER_BATCH}.")
        if code is not None and count != 1:
            raise ValidationFailedError("A custom code cannot be combined with count > 1.")
        _validate_max_uses(max_uses)
        if expires_at is not None and expires_at <= now_utc:
            raise InvalidExpiryError

        content = await ResourcesRepo.get_live_content(
            session,
            content_type=content_type,
            content_id=content_id,
        )
        if content is None:
            raise ContentNotFoundError
        if content.owner_id != created_by_user_id:
            raise NotContentOwnerError

        if code is not None:
            custom_code = normalize_code(code)
            if not is_valid_custom_code(custom_code):
                raise InvalidCodeError
            if await ActivationCodesRepo.get_by_code(session, custom_code) is not None:
                raise CodeTakenError
            raw_codes = [custom_code]
        else:
            raw_codes = await ActivationCodeService._pick_new_codes(
                session,
                count=count,
                length=get_settings().activation_code_length,
            )

        try:
            rows = await ActivationCodesRepo.create_many(
                session,
                codes=[
                    ActivationCode(
                        code=raw_code,
                        content_id=content_id,
                        content_type=content_type,
                        max_uses=max_uses,
                        uses_count=0,
                        expires_at=expires_at,
                        is_active=True,
                        created_by_user_id=created_by_user_id,
                        created_at=now_utc,
                        updated_at=now_utc,
                    )
                    for raw_code in raw_codes
                ],
            )
        except IntegrityError as exc:
            # Another transaction inserted the same code after our existence check.
            if extract_sqlstate(exc) != UNIQUE_VIOLATION:
                raise
            if code is not None:
                raise CodeTakenError from exc
            raise CodeCollisionError from exc
        logger.info(
            "activation_codes_created",
            content_type=content_type,
            content_id=content_id,
            created_by_user_id=created_by_user_id,
            codes_count=len(rows),
            max_uses=max_uses,
            custom_code=code is not None,
        )
        return [as_code_view(row, now_utc=now_utc) for row in rows]

    @staticmethod
    async def create_codes_with_retry(**kwargs: Any) -> list[ActivationCodeView]:
        """``create_codes`` in its own transaction; generated batches that collide are redrawn."""

        async def _operation(session: AsyncSession) -> list[ActivationCodeView]:
            return await ActivationCodeService.create_codes(session, **kwargs)

        return await run_in_transaction(
            _operation,
            operation_name="activation_codes_create",
            max_attempts=get_settings().redeem_conflict_max_attempts,
            conflict_error=CodeCollisionError,
        )

    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        code_id: int,
        owner_id: int | None = None,
        now_utc: datetime | None = None,
    ) -> ActivationCodeView:
        """Return one code. With ``owner_id`` only codes on that user's content are visible."""
        now_utc = now_utc or datetime.now(timezone.utc)
        if owner_id is None:
            activation_code = await ActivationCodesRepo.get_by_id(session, code_id)
        else:
            activation_code = await ActivationCodesRepo.get_owned_by_id(
                session,
                code_id,
                owner_id=owner_id,
            )
        if activation_code is None:
            raise ActivationCodeNotFoundError
        return as_code_view(activation_code, now_utc=now_utc)

    @staticmethod
    async def list_codes(
        session: AsyncSession,
        *,
        content_type: str | None = None,
        content_id: int | None = None,
        owner_id: int | None = None,
        now_utc: datetime | None = None,
    ) -> list[ActivationCodeView]:
        now_utc = now_utc or datetime.now(timezone.utc)
        codes = await ActivationCodesRepo.list_for_content(
            session,
            content_type=content_type,
            content_id=content_id,
            owner_id=owner_id,
        )
        return [as_code_view(code, now_utc=now_utc) for code in codes]

    @staticmethod
    async def update(
        session: AsyncSession,
        *,
        code_id: int,
        is_active: bool | None = None,
        max_uses: int | None | _Unset = UNSET,
        expires_at: datetime | None | _Unset = UNSET,
        now_utc: datetime | None = None,
    ) -> ActivationCodeView:
        """Admin mutation of a code. Issued grants are never touched.

        ``UNSET`` leaves a nullable field alone; ``None`` clears it (unlimited uses, no
        expiry). Changes apply to every status evaluation after commit.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        activation_code = await ActivationCodesRepo.get_by_id_for_update(session, code_id)
        if activation_code is None:
            raise ActivationCodeNotFoundError

        changes: dict[str, object] = {}
        if is_active is not None and is_active != activation_code.is_active:
            activation_code.is_active = is_active
            changes["is_active"] = is_active
        if not isinstance(max_uses, _Unset):
            _validate_max_uses(max_uses, uses_count=activation_code.uses_count)
            activation_code.max_uses = max_uses
            changes["max_uses"] = max_uses
        if not isinstance(expires_at, _Unset):
            activation_code.expires_at = expires_at
            changes["expires_at"] = expires_at.isoformat() if expires_at is not None else None

        if changes:
            activation_code.updated_at = now_utc
            logger.info("activation_code_updated", code_id=activation_code.id, **changes)
        return as_code_view(activation_code, now_utc=now_utc)

    @staticmethod
    async def delete(session: AsyncSession, *, code_id: int) -> None:
        # The row lock orders this against in-flight redemptions of the same code.
        activation_code = await ActivationCodesRepo.get_by_id_for_update(session, code_id)
        if activation_code is None:
            raise ActivationCodeNotFoundError
        if await UserActivationCodesRepo.count_for_code(session, code_id=code_id) > 0:
            raise CodeInUseError

        await ActivationCodesRepo.delete(session, code_id=code_id)
        logger.info(
            "activation_code_deleted",
            code_id=code_id,
            content_type=activation_code.content_type,
            content_id=activation_code.content_id,
        )

    @staticmethod
    async def _fail_for_status(
        *,
        status: CodeStatus,
        user_id: int,
        code_hash: str,
        code_id: int,
        now_utc: datetime,
    ) -> None:
        attempt_result, error_cls = _STATUS_FAILURES[status]
        await record_failed_attempt(
            user_id=user_id,
            code_hash=code_hash,
            result=attempt_result,
            now_utc=now_utc,
            metadata={"code_id": code_id},
        )
        raise error_cls

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        code: str,
        user_id: int,
        now_utc: datetime | None = None,
    ) -> RedeemResult:
        """One redemption attempt inside the caller's transaction.

        The use increment and the grant insert commit together or not at all. Raises
        ``RedeemConflictError`` (or lets a unique violation through) when a concurrent
        redemption won the race; callers re-run the whole transaction, see
        ``redeem_with_retry``.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized_code = normalize_code(code)

        if await UsersRepo.get_by_id(session, user_id) is None:
            raise AccessUserNotFoundError

        code_hash = hash_code(code=normalized_code, pepper=get_settings().code_hash_pepper)
        try:
            await enforce_rate_limit(session, user_id=user_id, now_utc=now_utc)
        except RedeemRateLimitedError:
            await record_failed_attempt(
                user_id=user_id,
                code_hash=code_hash,
                result=AttemptResult.RATE_LIMITED,
                now_utc=now_utc,
            )
            raise

        activation_code = None
        if normalized_code:
            activation_code = await ActivationCodesRepo.get_by_code(session, normalized_code)
        if activation_code is None:
            await record_failed_attempt(
                user_id=user_id,
                code_hash=code_hash,
                result=AttemptResult.NOT_FOUND,
                now_utc=now_utc,
            )
            raise ActivationCodeNotFoundError

        status = code_status(activation_code, now_utc=now_utc)
        if status is not CodeStatus.ACTIVE:
            await ActivationCodeService._fail_for_status(
                status=status,
                user_id=user_id,
                code_hash=code_hash,
                code_id=activation_code.id,
                now_utc=now_utc,
            )

        existing_grant = await UserActivationCodesRepo.get_by_user_and_code(
            session,
            user_id=user_id,
            code_id=activation_code.id,
        )
        if existing_grant is not None:
            if not existing_grant.is_active:
                await record_failed_attempt(
                    user_id=user_id,
                    code_hash=code_hash,
                    result=AttemptResult.REVOKED,
                    now_utc=now_utc,
                    metadata={"code_id": activation_code.id, "grant_id": existing_grant.id},
                )
                raise GrantRevokedError

            await record_attempt(
                session,
                user_id=user_id,
                code_hash=code_hash,
                result=AttemptResult.REPLAYED,
                now_utc=now_utc,
                metadata={"code_id": activation_code.id, "grant_id": existing_grant.id},
            )
            return RedeemResult(
                grant=as_grant_view(existing_grant, now_utc=now_utc),
                code_id=activation_code.id,
                uses_count=activation_code.uses_count,
                max_uses=activation_code.max_uses,
                idempotent_replay=True,
            )

        uses_count = await ActivationCodesRepo.consume_use(
            session,
            code_id=activation_code.id,
            now_utc=now_utc,
        )
        if uses_count is None:
            current = await ActivationCodesRepo.get_by_code(session, normalized_code, refresh=True)
            if current is None:
                await record_failed_attempt(
                    user_id=user_id,
                    code_hash=code_hash,
                    result=AttemptResult.NOT_FOUND,
                    now_utc=now_utc,
                )
                raise ActivationCodeNotFoundError
            status = code_status(current, now_utc=now_utc)
            if status is not CodeStatus.ACTIVE:
                await ActivationCodeService._fail_for_status(
                    status=status,
                    user_id=user_id,
                    code_hash=code_hash,
                    code_id=current.id,
                    now_utc=now_utc,
                )
            raise RedeemConflictError

        grant = await UserActivationCodesRepo.create(
            session,
            grant=UserActivationCode(
                user_id=user_id,
                code_id=activation_code.id,
                content_id=activation_code.content_id,
                content_type=activation_code.content_type,
                added_at=now_utc,
                expires_at=activation_code.expires_at,
                is_active=True,
                updated_at=now_utc,
            ),
        )
        await record_attempt(
            session,
            user_id=user_id,
            code_hash=code_hash,
            result=AttemptResult.ACCEPTED,
            now_utc=now_utc,
            metadata={"code_id": activation_code.id, "grant_id": grant.id},
        )
        logger.info(
            "activation_code_redeemed",
            user_id=user_id,
            code_id=activation_code.id,
            grant_id=grant.id,
            content_type=activation_code.content_type,
            content_id=activation_code.content_id,
            uses_count=uses_count,
            max_uses=activation_code.max_uses,
        )
        return RedeemResult(
            grant=as_grant_view(grant, now_utc=now_utc),
            code_id=activation_code.id,
            uses_count=uses_count,
            max_uses=activation_code.max_uses,
            idempotent_replay=False,
        )

    @staticmethod
    async def redeem_with_retry(
        *,
        code: str,
        user_id: int,
        now_utc: datetime | None = None,
    ) -> RedeemResult:
        async def _operation(session: AsyncSession) -> RedeemResult:
            return await ActivationCodeService.redeem(
                session,
                code=code,
                user_id=user_id,
                now_utc=now_utc,
            )

        return await run_in_transaction(
            _operation,
            operation_name="activation_code_redeem",
            max_attempts=get_settings().redeem_conflict_max_attempts,
            conflict_error=RedeemConflictError,
        )

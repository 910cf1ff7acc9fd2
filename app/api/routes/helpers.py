from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

import structlog
from fastapi import Header, HTTPException, Request

from app.core.config import get_settings
from app.core.errors import (
    ConflictError,
    EngineError,
    NotFoundError,
    PolicyDeniedError,
    ValidationFailedError,
)
from app.quota.errors import QuotaExceededError
from app.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

# Policy denials that mean "this code is gone" or "slow down" rather than "forbidden".
_POLICY_STATUS_BY_CODE: dict[str, int] = {
    "E_CODE_EXPIRED": 410,
    "E_CODE_EXHAUSTED": 410,
    "E_REDEEM_RATE_LIMITED": 429,
}


def get_current_user_id(x_user_id: Annotated[int, Header(alias="X-User-Id", gt=0)]) -> int:
    return x_user_id


def get_optional_user_id(
    x_user_id: Annotated[int | None, Header(alias="X-User-Id", gt=0)] = None,
) -> int | None:
    return x_user_id


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_http_exception(exc: EngineError) -> HTTPException:
    detail: dict[str, Any] = {"code": exc.code, "message": exc.message}
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, PolicyDeniedError):
        status_code = _POLICY_STATUS_BY_CODE.get(exc.code, 403)
        if isinstance(exc, QuotaExceededError):
            detail.update(
                resource_kind=exc.decision.resource_kind.value,
                tier=exc.decision.tier,
                limit=exc.decision.limit,
                current=exc.decision.current,
            )
    elif isinstance(exc, ConflictError):
        status_code = 409
        detail["retryable"] = True
    elif isinstance(exc, ValidationFailedError):
        status_code = 422
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=detail)


def assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning("internal_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def assert_self_or_internal(request: Request, *, caller_id: int | None, user_id: int) -> None:
    if caller_id != user_id:
        assert_internal_access(request)


def code_reader_scope(request: Request, *, caller_id: int | None) -> int | None:
    """Owner to scope activation-code reads to; ``None`` only for internal callers."""
    if caller_id is None:
        assert_internal_access(request)
    return caller_id

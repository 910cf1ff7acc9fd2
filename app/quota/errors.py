from __future__ import annotations

from app.core.errors import NotFoundError, PolicyDeniedError
from app.quota.types import QuotaDecision


class QuotaUserNotFoundError(NotFoundError):
    code = "E_USER_NOT_FOUND"
    default_message = "User not found."


class QuotaExceededError(PolicyDeniedError):
    code = "E_QUOTA_EXCEEDED"

    def __init__(self, decision: QuotaDecision) -> None:
        self.decision = decision
        super().__init__(decision.message)

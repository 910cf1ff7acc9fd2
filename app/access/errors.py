from app.core.errors import (
    ConflictError,
    NotFoundError,
    PolicyDeniedError,
    ValidationFailedError,
)


class ActivationCodeNotFoundError(NotFoundError):
    code = "E_CODE_NOT_FOUND"
    default_message = "Activation code not found."


class ContentNotFoundError(NotFoundError):
    code = "E_CONTENT_NOT_FOUND"
    default_message = "Content not found."


class AccessUserNotFoundError(NotFoundError):
    code = "E_USER_NOT_FOUND"
    default_message = "User not found."


class GrantNotFoundError(NotFoundError):
    code = "E_GRANT_NOT_FOUND"
    default_message = "Access grant not found."


class CodeDisabledError(PolicyDeniedError):
    code = "E_CODE_DISABLED"
    default_message = "This activation code has been disabled."


class CodeExpiredError(PolicyDeniedError):
    code = "E_CODE_EXPIRED"
    default_message = "This activation code has expired."


class CodeExhaustedError(PolicyDeniedError):
    code = "E_CODE_EXHAUSTED"
    default_message = "This activation code has reached its maximum number of uses."


class GrantRevokedError(PolicyDeniedError):
    code = "E_GRANT_REVOKED"
    default_message = "Your access to this content was revoked."


class RedeemRateLimitedError(PolicyDeniedError):
    code = "E_REDEEM_RATE_LIMITED"
    default_message = "Too many failed attempts. Please try again later."


class CodeInUseError(PolicyDeniedError):
    code = "E_CODE_IN_USE"
    default_message = "This activation code has been redeemed. Disable it instead."


class RedeemConflictError(ConflictError):
    code = "E_REDEEM_CONFLICT"


class InvalidCodeError(ValidationFailedError):
    code = "E_INVALID_CODE"
    default_message = "Activation code is malformed."


class CodeTakenError(ValidationFailedError):
    code = "E_CODE_TAKEN"
    default_message = "This activation code already exists."


class InvalidMaxUsesError(ValidationFailedError):
    code = "E_INVALID_MAX_USES"
    default_message = "max_uses must be a positive number not below the current use count."


class InvalidExpiryError(ValidationFailedError):
    code = "E_INVALID_EXPIRY"
    default_message = "expires_at must be in the future."


class NotContentOwnerError(PolicyDeniedError):
    code = "E_NOT_CONTENT_OWNER"
    default_message = "Only the owner of this content can create activation codes for it."


class CodeCollisionError(ConflictError):
    code = "E_CODE_COLLISION"
    default_message = "A generated activation code collided with a concurrent batch, please retry."

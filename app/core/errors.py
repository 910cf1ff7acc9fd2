"""Error taxonomy shared by the access and quota packages.

Every domain error derives from exactly one of the four kinds below so callers can
tell "your code is bad" from "you are out of quota" from "try again".
"""


class EngineError(Exception):
    code = "E_INTERNAL"
    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(EngineError):
    code = "E_NOT_FOUND"
    default_message = "Not found."


class PolicyDeniedError(EngineError):
    code = "E_POLICY_DENIED"
    default_message = "Request denied."


class ConflictError(EngineError):
    """Lost a race for an atomic update; re-running the whole operation may succeed."""

    code = "E_CONFLICT"
    default_message = "Concurrent update detected, please retry."


class ValidationFailedError(EngineError):
    code = "E_VALIDATION"
    default_message = "Invalid request."

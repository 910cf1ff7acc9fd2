from app.core.errors import NotFoundError


class ResourceNotFoundError(NotFoundError):
    code = "E_RESOURCE_NOT_FOUND"
    default_message = "Resource not found."

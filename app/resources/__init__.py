from app.resources.service import ResourceService

__all__ = ["ResourceService"]

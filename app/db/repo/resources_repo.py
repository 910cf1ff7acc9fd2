from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.media_files import MediaFile
from app.db.models.playlists import Playlist
from app.db.models.products import Product
from app.db.models.qr_codes import QrCode
from app.db.models.slideshows import Slideshow
from app.quota.types import ResourceKind

# Audio and video files share one table and are told apart by media_type.
_MEDIA_TYPE_BY_KIND: dict[ResourceKind, str] = {
    ResourceKind.MEDIA: "audio",
    ResourceKind.VIDEOS: "video",
}
_MODEL_BY_KIND: dict[ResourceKind, Any] = {
    ResourceKind.PRODUCTS: Product,
    ResourceKind.MEDIA: MediaFile,
    ResourceKind.VIDEOS: MediaFile,
    ResourceKind.PLAYLISTS: Playlist,
    ResourceKind.QR_CODES: QrCode,
    ResourceKind.SLIDESHOWS: Slideshow,
}
_CONTENT_MODEL_BY_TYPE: dict[str, Any] = {
    "playlist": Playlist,
    "slideshow": Slideshow,
}


def _live_filters(model: Any, resource_kind: ResourceKind, owner_id: int) -> list[Any]:
    filters = [model.owner_id == owner_id, model.deleted_at.is_(None)]
    media_type = _MEDIA_TYPE_BY_KIND.get(resource_kind)
    if media_type is not None:
        filters.append(model.media_type == media_type)
    return filters


class ResourcesRepo:
    @staticmethod
    async def lock_owner_kind(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
    ) -> None:
        """Serialize creations of one kind for one owner until the transaction ends."""
        lock_key = f"quota:{owner_id}:{ResourceKind(resource_kind).value}"
        await session.execute(select(func.pg_advisory_xact_lock(func.hashtextextended(lock_key, 0))))

    @staticmethod
    async def count_live(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
    ) -> int:
        kind = ResourceKind(resource_kind)
        model = _MODEL_BY_KIND[kind]
        stmt = select(func.count(model.id)).where(*_live_filters(model, kind, owner_id))
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
        name: str,
        now_utc: datetime,
        requires_activation_code: bool = False,
    ) -> Any:
        kind = ResourceKind(resource_kind)
        model = _MODEL_BY_KIND[kind]
        values: dict[str, object] = {
            "owner_id": owner_id,
            "name": name,
            "created_at": now_utc,
        }
        if requires_activation_code:
            values["requires_activation_code"] = True
        media_type = _MEDIA_TYPE_BY_KIND.get(kind)
        if media_type is not None:
            values["media_type"] = media_type

        row = model(**values)
        session.add(row)
        await session.flush()
        return row

    @staticmethod
    async def get_live_for_update(
        session: AsyncSession,
        *,
        owner_id: int,
        resource_kind: ResourceKind,
        resource_id: int,
    ) -> Any | None:
        kind = ResourceKind(resource_kind)
        model = _MODEL_BY_KIND[kind]
        stmt = (
            select(model)
            .where(model.id == resource_id, *_live_filters(model, kind, owner_id))
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_live_content(
        session: AsyncSession,
        *,
        content_type: str,
        content_id: int,
    ) -> Playlist | Slideshow | None:
        model = _CONTENT_MODEL_BY_TYPE.get(content_type)
        if model is None:
            return None
        stmt = select(model).where(model.id == content_id, model.deleted_at.is_(None))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

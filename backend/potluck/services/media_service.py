"""
Potluck Backend: Media Attachment Service
==========================================

What:  The "upload, then record" step that runs before any resource that
       references media (user profile picture, post attachment, standalone
       media used by recipes and meal plans).
Who:   Called by UserService, PostService and the /api/media route.

Attachment Flow:
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │  Validate    │───▶│  Upload to   │───▶│  Insert      │
    │  type & size │    │  ObjectStore │    │  Media row   │
    └──────────────┘    └──────────────┘    └──────────────┘

    Validation failure → nothing uploaded, nothing written
    Upload failure     → UploadError, nothing written
    Row insert failure → uploaded object deleted, error propagates

attach() only flushes; the caller's unit_of_work decides whether the media
row is committed together with the resource that references it.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.database import unit_of_work
from potluck.exceptions import (
    AuthorizationError,
    NotFoundError,
    UnsupportedMediaTypeError,
    UploadError,
    ValidationError,
)
from potluck.models.media import Media, MediaType
from potluck.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

# ── Object Key Templates ──────────────────────────────────────────────────
PROFILE_KEY_TEMPLATE = "users/{owner}/{filename}"
POST_KEY_TEMPLATE = "posts/{owner}/{filename}"
MEDIA_KEY_TEMPLATE = "media/{owner}/{filename}"

ALL_MEDIA_TYPES = (MediaType.IMAGE, MediaType.VIDEO)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


@dataclass(frozen=True)
class MediaUpload:
    """An uploaded file as read by the route, detached from the framework."""
    filename: str
    content: bytes
    content_type: str
    declared_size: Optional[int] = None


def resolve_media_type(content_type: Optional[str]) -> MediaType:
    """Map a declared Content-Type onto image/video by its prefix."""
    ct = (content_type or "").strip().lower()
    if ct.startswith("image/"):
        return MediaType.IMAGE
    if ct.startswith("video/"):
        return MediaType.VIDEO
    raise UnsupportedMediaTypeError(content_type=content_type or "")


def build_object_key(template: str, owner_id: UUID, filename: str) -> str:
    """
    Key under the owner's prefix: {template dir}/{owner}/{random}-{filename}.

    Path separators and other unsafe characters in the filename become "_",
    so a client cannot steer the key outside its owner prefix. The random
    part keeps two uploads of "photo.jpg" from overwriting each other.
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("_", filename or "").lstrip(".")
    if not safe:
        safe = "upload"
    return template.format(owner=owner_id, filename=f"{uuid.uuid4().hex[:12]}-{safe}")


class MediaAttachmentService:
    def __init__(self, session: AsyncSession, storage: ObjectStorage, max_upload_size: int):
        self._session = session
        self._storage = storage
        self._max_upload_size = max_upload_size

    def validate(
        self,
        upload: MediaUpload,
        allowed_types: Iterable[MediaType] = ALL_MEDIA_TYPES,
    ) -> MediaType:
        """
        Check type and size before anything touches the object store.

        Raises:
            UnsupportedMediaTypeError: not image/* or video/*, or a type not
                allowed for this attachment (e.g. video as profile picture)
            ValidationError: empty payload or larger than max_upload_size
        """
        allowed = tuple(allowed_types)
        media_type = resolve_media_type(upload.content_type)
        if media_type not in allowed:
            raise UnsupportedMediaTypeError(
                content_type=upload.content_type,
                allowed=[f"{t.value}/*" for t in allowed],
            )

        if upload.declared_size == 0 or not upload.content:
            raise ValidationError(message="Uploaded file is empty", field="media")

        max_mb = self._max_upload_size / (1024 * 1024)
        size = max(len(upload.content), upload.declared_size or 0)
        if size > self._max_upload_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="media",
                context={"max_size_mb": max_mb, "actual_size": size},
            )
        return media_type

    async def attach(
        self,
        owner_id: UUID,
        upload: MediaUpload,
        key_template: str = MEDIA_KEY_TEMPLATE,
        allowed_types: Iterable[MediaType] = ALL_MEDIA_TYPES,
    ) -> Media:
        """
        Validate, upload and record one media asset.

        Returns:
            The flushed (not yet committed) Media row, with id and url set.

        Raises:
            UnsupportedMediaTypeError / ValidationError: rejected input
            UploadError: the object store failed; no row was written
        """
        media_type = self.validate(upload, allowed_types)
        key = build_object_key(key_template, owner_id, upload.filename)

        url = await self._storage.put_object(key, upload.content, upload.content_type)

        media = Media(
            id=uuid.uuid4(),
            url=url,
            media_type=media_type,
            author_id=owner_id,
            object_key=key,
        )
        self._session.add(media)
        try:
            await self._session.flush()
        except SQLAlchemyError:
            await self.discard(media)
            raise

        logger.info("Media %s attached for owner %s (%s)", media.id, owner_id, media_type.value)
        return media

    async def discard(self, media: Media) -> None:
        """
        Best-effort removal of an uploaded object whose row was not kept.

        Failures are logged, not raised: the caller is already handling the
        error that made the object orphaned.
        """
        try:
            await self._storage.delete_object(media.object_key)
            logger.info("Discarded orphaned object %s", media.object_key)
        except UploadError as e:
            logger.warning("Failed to discard object %s: %s", media.object_key, e.context)

    async def get_media(self, media_id: UUID) -> Media:
        media = await self._session.get(Media, media_id)
        if media is None:
            raise NotFoundError(resource="media", resource_id=str(media_id))
        return media

    async def get_owned_media(self, media_id: UUID, owner_id: UUID) -> Media:
        """Fetch media that is about to be referenced by the owner's resource."""
        media = await self.get_media(media_id)
        if media.author_id != owner_id:
            raise AuthorizationError(resource="media", resource_id=str(media_id))
        return media

    async def upload_standalone(self, owner_id: UUID, upload: MediaUpload) -> Media:
        """Upload media on its own (POST /api/media) and commit the row."""
        async with unit_of_work(self._session, "create_media"):
            media = await self.attach(owner_id, upload, MEDIA_KEY_TEMPLATE)
        return media

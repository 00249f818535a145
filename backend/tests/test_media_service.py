"""
Potluck Backend: Media Attachment & Storage Tests
==================================================

What we test:
    ✅ Content-type, emptiness and size validation happen before any upload
    ✅ Profile uploads accept images only
    ✅ Object keys follow the template and are sanitized
    ✅ attach() stores the bytes and flushes a Media row with the public URL
    ✅ A failed upload leaves no Media row
    ✅ Ownership of referenced media
    ✅ LocalObjectStorage rejects keys escaping its root
    ✅ An S3 upload that lands after its timeout is deleted
"""

import asyncio
import time
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError
from sqlalchemy import func, select

from potluck.exceptions import (
    AuthorizationError,
    NotFoundError,
    UnsupportedMediaTypeError,
    UploadError,
    ValidationError,
)
from potluck.models.media import Media, MediaType
from potluck.services.media_service import (
    POST_KEY_TEMPLATE,
    PROFILE_KEY_TEMPLATE,
    MediaAttachmentService,
    MediaUpload,
    build_object_key,
    resolve_media_type,
)
from potluck.services.storage import LocalObjectStorage, S3ObjectStorage

MAX_SIZE = 1024 * 1024


def _upload(content=b"\xff\xd8jpeg\xff\xd9", content_type="image/jpeg", filename="dish.jpg"):
    return MediaUpload(
        filename=filename,
        content=content,
        content_type=content_type,
        declared_size=len(content),
    )


class TestValidation:
    def setup_method(self):
        self.storage = AsyncMock()
        self.service = MediaAttachmentService(AsyncMock(), self.storage, MAX_SIZE)

    def test_image_and_video_resolve(self):
        assert resolve_media_type("image/png") is MediaType.IMAGE
        assert resolve_media_type("video/mp4") is MediaType.VIDEO

    def test_other_content_types_are_unsupported(self):
        with pytest.raises(UnsupportedMediaTypeError):
            self.service.validate(_upload(content_type="application/pdf"))

    def test_video_is_rejected_for_profile_pictures(self):
        with pytest.raises(UnsupportedMediaTypeError):
            self.service.validate(_upload(content_type="video/mp4"), [MediaType.IMAGE])

    def test_empty_upload_is_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate(_upload(content=b""))

    def test_oversized_upload_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate(_upload(content=b"x" * (MAX_SIZE + 1)))
        assert exc_info.value.context["actual_size"] == MAX_SIZE + 1


class TestObjectKeys:
    def test_template_placeholders_are_filled(self):
        owner = uuid.uuid4()
        key = build_object_key(PROFILE_KEY_TEMPLATE, owner, "me.png")
        assert key.startswith(f"users/{owner}/")
        assert key.endswith("me.png")

    def test_same_filename_gets_distinct_keys(self):
        owner = uuid.uuid4()
        first = build_object_key(POST_KEY_TEMPLATE, owner, "dish.jpg")
        second = build_object_key(POST_KEY_TEMPLATE, owner, "dish.jpg")
        assert first != second

    def test_unsafe_characters_are_replaced(self):
        key = build_object_key(POST_KEY_TEMPLATE, uuid.uuid4(), "../../etc/pass wd.jpg")
        assert ".." not in key.split("/")
        assert " " not in key


class TestAttach:
    @pytest.mark.asyncio
    async def test_attach_stores_and_records(self, session, local_storage):
        service = MediaAttachmentService(session, local_storage, MAX_SIZE)
        owner = uuid.uuid4()

        media = await service.attach(owner, _upload(), POST_KEY_TEMPLATE)
        await session.commit()

        assert media.author_id == owner
        assert media.media_type is MediaType.IMAGE
        assert media.url == local_storage.public_url(media.object_key)
        assert local_storage.resolve(media.object_key).read_bytes() == b"\xff\xd8jpeg\xff\xd9"

    @pytest.mark.asyncio
    async def test_failed_upload_writes_no_row(self, session):
        storage = AsyncMock()
        storage.put_object.side_effect = UploadError(context={"reason": "timeout"})
        service = MediaAttachmentService(session, storage, MAX_SIZE)

        with pytest.raises(UploadError):
            await service.attach(uuid.uuid4(), _upload())
        await session.rollback()

        assert await session.scalar(select(func.count()).select_from(Media)) == 0

    @pytest.mark.asyncio
    async def test_invalid_upload_never_reaches_storage(self, session):
        storage = AsyncMock()
        service = MediaAttachmentService(session, storage, MAX_SIZE)

        with pytest.raises(UnsupportedMediaTypeError):
            await service.attach(uuid.uuid4(), _upload(content_type="text/plain"))
        storage.put_object.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_standalone_upload_is_committed(self, session, local_storage):
        service = MediaAttachmentService(session, local_storage, MAX_SIZE)
        media = await service.upload_standalone(uuid.uuid4(), _upload(content_type="video/mp4"))

        assert media.media_type is MediaType.VIDEO
        assert media.object_key.startswith("media/")
        assert (await session.get(Media, media.id)) is not None


class TestOwnedMedia:
    @pytest.mark.asyncio
    async def test_owner_can_reference_media(self, session, local_storage):
        service = MediaAttachmentService(session, local_storage, MAX_SIZE)
        owner = uuid.uuid4()
        media = await service.upload_standalone(owner, _upload())

        assert (await service.get_owned_media(media.id, owner)).id == media.id

    @pytest.mark.asyncio
    async def test_other_users_media_is_forbidden(self, session, local_storage):
        service = MediaAttachmentService(session, local_storage, MAX_SIZE)
        media = await service.upload_standalone(uuid.uuid4(), _upload())

        with pytest.raises(AuthorizationError):
            await service.get_owned_media(media.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_unknown_media_is_not_found(self, session, local_storage):
        service = MediaAttachmentService(session, local_storage, MAX_SIZE)
        with pytest.raises(NotFoundError):
            await service.get_owned_media(uuid.uuid4(), uuid.uuid4())


class TestLocalStorage:
    def test_keys_outside_root_are_rejected(self, tmp_path):
        storage = LocalObjectStorage(str(tmp_path), "http://test")
        with pytest.raises(UploadError):
            storage.resolve("../outside.jpg")

    @pytest.mark.asyncio
    async def test_put_then_delete(self, tmp_path):
        storage = LocalObjectStorage(str(tmp_path), "http://test/")
        url = await storage.put_object("posts/a/b.jpg", b"data", "image/jpeg")

        assert url == "http://test/media/files/posts/a/b.jpg"
        assert (tmp_path / "posts" / "a" / "b.jpg").read_bytes() == b"data"

        await storage.delete_object("posts/a/b.jpg")
        assert not (tmp_path / "posts" / "a" / "b.jpg").exists()
        assert await storage.check()


class TestS3Storage:
    def setup_method(self):
        self.storage = S3ObjectStorage(
            bucket_name="potluck-test",
            region="us-east-1",
            access_key_id="test",
            secret_access_key="test",
            upload_timeout=0.05,
        )
        self.client = MagicMock()
        self.storage._client = self.client

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        url = await self.storage.put_object("posts/a/b.jpg", b"data", "image/jpeg")

        assert url == "https://potluck-test.s3.us-east-1.amazonaws.com/posts/a/b.jpg"
        assert self.client.put_object.call_args.kwargs["ACL"] == "public-read"

    @pytest.mark.asyncio
    async def test_upload_landing_after_timeout_is_deleted(self):
        self.client.put_object.side_effect = lambda **kwargs: time.sleep(0.3)

        with pytest.raises(UploadError) as exc_info:
            await self.storage.put_object("posts/a/slow.jpg", b"data", "image/jpeg")
        assert exc_info.value.context["reason"] == "timeout"
        self.client.delete_object.assert_not_called()

        await asyncio.gather(*self.storage._late_uploads)

        self.client.delete_object.assert_called_once_with(
            Bucket="potluck-test", Key="posts/a/slow.jpg"
        )

    @pytest.mark.asyncio
    async def test_late_failure_needs_no_cleanup(self):
        def slow_failure(**kwargs):
            time.sleep(0.3)
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")

        self.client.put_object.side_effect = slow_failure

        with pytest.raises(UploadError):
            await self.storage.put_object("posts/a/slow.jpg", b"data", "image/jpeg")
        await asyncio.gather(*self.storage._late_uploads)

        self.client.delete_object.assert_not_called()

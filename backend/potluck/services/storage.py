"""
Potluck Backend: Object Storage Backends
=========================================

What:  Where uploaded bytes live. The database only keeps the public URL.
How:   ObjectStorage is the interface; two implementations:

    S3ObjectStorage     boto3 put_object with ACL public-read. boto3 is
                        blocking, so calls run in Starlette's threadpool.
                        URL: https://{bucket}.s3.{region}.amazonaws.com/{key}
    LocalObjectStorage  aiofiles under storage_root, served back by
                        GET /media/files/{key} (development, tests).

Every upload is bounded by upload_timeout_seconds. Failures surface as
UploadError immediately; botocore's own retries are disabled. An S3 upload
that completes after its timeout is deleted in the background.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Set

import aiofiles
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from potluck.config import Settings
from potluck.exceptions import UploadError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Abstract interface for object storage operations."""

    @abstractmethod
    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store `data` under `key` with public-read visibility.

        Returns:
            The public URL of the stored object.

        Raises:
            UploadError: the backend rejected the write or timed out
        """

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        """Remove an object. Raises UploadError on backend failure."""

    @abstractmethod
    async def check(self) -> bool:
        """Lightweight reachability probe for /health."""


class S3ObjectStorage(ObjectStorage):
    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        upload_timeout: float = 60.0,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self.public_base_url = (
            public_base_url.rstrip("/")
            if public_base_url
            else f"https://{bucket_name}.s3.{region}.amazonaws.com"
        )
        self.upload_timeout = upload_timeout
        # Cleanup tasks for uploads that outlived their timeout
        self._late_uploads: Set[asyncio.Future] = set()

        # Credentials fall back to boto3's default chain when not given
        self._client = boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )
        logger.info("S3ObjectStorage initialized: bucket=%s, region=%s", bucket_name, region)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        # The worker thread cannot be cancelled; shield it so a timeout leaves
        # it running and the late object can be removed once it lands
        upload = asyncio.ensure_future(
            run_in_threadpool(
                self._client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        )
        try:
            await asyncio.wait_for(asyncio.shield(upload), timeout=self.upload_timeout)
        except asyncio.TimeoutError as e:
            logger.error("S3 upload timed out after %.0fs: key=%s", self.upload_timeout, key)
            cleanup = asyncio.ensure_future(self._delete_late_upload(upload, key))
            self._late_uploads.add(cleanup)
            cleanup.add_done_callback(self._late_uploads.discard)
            raise UploadError(context={"key": key, "reason": "timeout"}) from e
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed: key=%s, error=%s", key, e)
            raise UploadError(context={"key": key, "error_type": type(e).__name__}) from e

        logger.info("Uploaded s3://%s/%s (%d bytes)", self.bucket_name, key, len(data))
        return self.public_url(key)

    async def _delete_late_upload(self, upload: asyncio.Future, key: str) -> None:
        """Wait for an abandoned upload and delete the object if it was stored."""
        try:
            await upload
        except (ClientError, BotoCoreError) as e:
            logger.info("Timed-out upload of %s failed afterwards: %s", key, e)
            return

        logger.warning("Upload of %s finished after its timeout; deleting the orphan", key)
        try:
            await self.delete_object(key)
        except UploadError as e:
            logger.error("Orphaned object left at s3://%s/%s: %s", self.bucket_name, key, e.context)

    async def delete_object(self, key: str) -> None:
        try:
            await run_in_threadpool(
                self._client.delete_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(
                message="Failed to delete media",
                context={"key": key, "error_type": type(e).__name__},
            ) from e
        logger.info("Deleted s3://%s/%s", self.bucket_name, key)

    async def check(self) -> bool:
        try:
            await run_in_threadpool(self._client.head_bucket, Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 bucket check failed: %s", e)
            return False
        return True


class LocalObjectStorage(ObjectStorage):
    """
    Stores objects as files below `root`.

    Keys map directly onto relative paths; resolve() rejects any key that
    would escape the root.
    """

    def __init__(self, root: str, public_base_url: str, upload_timeout: float = 60.0):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        self.upload_timeout = upload_timeout
        logger.info("LocalObjectStorage initialized with root=%s", self.root)

    def resolve(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise UploadError(message="Invalid object key", context={"key": key})
        return path

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/media/files/{key}"

    async def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        path = self.resolve(key)
        try:
            await asyncio.wait_for(self._write(path, data), timeout=self.upload_timeout)
        except asyncio.TimeoutError as e:
            raise UploadError(context={"key": key, "reason": "timeout"}) from e
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, e)
            raise UploadError(context={"key": key, "os_error": str(e)}) from e

        logger.info("File stored: %s (%d bytes)", key, len(data))
        return self.public_url(key)

    async def delete_object(self, key: str) -> None:
        path = self.resolve(key)
        try:
            if path.exists():
                os.remove(path)
        except OSError as e:
            raise UploadError(
                message="Failed to delete media",
                context={"key": key, "os_error": str(e)},
            ) from e

    async def check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)


def build_storage(settings: Settings) -> ObjectStorage:
    """Pick the storage backend named by settings.storage_backend."""
    if settings.storage_backend == "s3":
        return S3ObjectStorage(
            bucket_name=settings.s3_bucket_name,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
            connect_timeout=settings.s3_connect_timeout,
            read_timeout=settings.s3_read_timeout,
            upload_timeout=settings.upload_timeout_seconds,
        )
    return LocalObjectStorage(
        root=settings.storage_root,
        public_base_url=settings.public_base_url,
        upload_timeout=settings.upload_timeout_seconds,
    )

"""
Potluck Backend: Media Routes
==============================

POST /api/media           upload an image or video on its own; the returned
                          id is what recipes (media_id) and meal plans
                          (photo_id) reference
GET  /api/media/{id}      media metadata
GET  /media/files/{key}   bytes stored by LocalObjectStorage (development);
                          with S3 the public bucket URL is used instead
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from potluck.dependencies import get_current_identity, get_media_service, get_storage, read_upload
from potluck.exceptions import NotFoundError, UploadError, ValidationError
from potluck.schemas.common import ErrorResponse
from potluck.schemas.media import MediaResponse
from potluck.services.media_service import MediaAttachmentService
from potluck.services.storage import LocalObjectStorage, ObjectStorage
from potluck.services.tokens import Identity

router = APIRouter(tags=["Media"])


@router.post(
    "/api/media",
    response_model=MediaResponse,
    status_code=201,
    responses={
        400: {"description": "Missing, empty, oversized or unsupported file", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Upload failed", "model": ErrorResponse},
    },
)
async def upload_media(
    media: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_current_identity),
    service: MediaAttachmentService = Depends(get_media_service),
) -> MediaResponse:
    upload = await read_upload(media)
    if upload is None:
        raise ValidationError(message="Media file is required", field="media")
    stored = await service.upload_standalone(identity.user_id, upload)
    return MediaResponse.model_validate(stored)


@router.get(
    "/api/media/{media_id}",
    response_model=MediaResponse,
    responses={404: {"description": "Media not found", "model": ErrorResponse}},
)
async def get_media(
    media_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: MediaAttachmentService = Depends(get_media_service),
) -> MediaResponse:
    return MediaResponse.model_validate(await service.get_media(media_id))


@router.get("/media/files/{key:path}", include_in_schema=False)
async def serve_local_file(
    key: str,
    storage: ObjectStorage = Depends(get_storage),
) -> FileResponse:
    if not isinstance(storage, LocalObjectStorage):
        raise NotFoundError(resource="file")
    try:
        path = storage.resolve(key)
    except UploadError as e:
        raise NotFoundError(resource="file") from e
    if not path.is_file():
        raise NotFoundError(resource="file")
    return FileResponse(path)

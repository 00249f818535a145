"""
Potluck Backend: Post Routes
=============================

Posts are created from multipart forms (title, body, tags, media file and
an optional recipe_id) and updated with JSON. Only the author may update or
delete a post.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from potluck.dependencies import get_current_identity, get_page, get_post_service, read_upload
from potluck.exceptions import ValidationError
from potluck.schemas.common import ErrorResponse
from potluck.schemas.post import PostListResponse, PostResponse, PostUpdate
from potluck.services.pagination import Page
from potluck.services.post_service import PostService
from potluck.services.tokens import Identity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


def _optional_uuid(raw: Optional[str], field: str) -> Optional[UUID]:
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError as e:
        raise ValidationError(message=f"{field} must be a UUID", field=field) from e


@router.post(
    "",
    response_model=PostResponse,
    status_code=201,
    responses={
        400: {"description": "Missing fields or unsupported media", "model": ErrorResponse},
        404: {"description": "Referenced recipe not found", "model": ErrorResponse},
        500: {"description": "Upload or database failure", "model": ErrorResponse},
    },
    summary="Publish a post with an image or video",
)
async def create_post(
    title: str = Form(""),
    body: str = Form(""),
    tags: str = Form(""),
    recipe_id: Optional[str] = Form(None),
    media: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_current_identity),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    post = await posts.create_post(
        identity,
        title=title,
        body=body,
        tags=tags,
        upload=await read_upload(media),
        recipe_id=_optional_uuid(recipe_id, "recipe_id"),
    )
    return PostResponse.model_validate(post)


@router.get("", response_model=PostListResponse, summary="List posts, newest first")
async def list_posts(
    page: Page = Depends(get_page),
    identity: Identity = Depends(get_current_identity),
    posts: PostService = Depends(get_post_service),
) -> PostListResponse:
    return await posts.list_posts(page)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
)
async def get_post(
    post_id: UUID,
    identity: Identity = Depends(get_current_identity),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    return PostResponse.model_validate(await posts.get_post(post_id))


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
)
async def update_post(
    post_id: UUID,
    changes: PostUpdate,
    identity: Identity = Depends(get_current_identity),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    return PostResponse.model_validate(await posts.update_post(identity, post_id, changes))


@router.delete(
    "/{post_id}",
    status_code=204,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
)
async def delete_post(
    post_id: UUID,
    identity: Identity = Depends(get_current_identity),
    posts: PostService = Depends(get_post_service),
) -> Response:
    await posts.delete_post(identity, post_id)
    return Response(status_code=204)

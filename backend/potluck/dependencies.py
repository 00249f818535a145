"""
Potluck Backend: FastAPI Dependencies
======================================

What:  Wiring between app.state (built once by create_app) and the route
       handlers: settings, storage, token codec, the authentication gate
       and per-request service instances.

Authentication gate:
    Unauthenticated ──(Bearer token verifies)──▶ Authenticated
    Any failure raises AuthenticationError/InvalidTokenError (401) before
    the handler runs. On success the Identity is returned to the handler
    and stored on request.state for the rest of this request only.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.config import Settings
from potluck.database import get_db_session
from potluck.exceptions import AuthenticationError, InvalidTokenError
from potluck.services.media_service import MediaAttachmentService, MediaUpload
from potluck.services.meal_plan_service import MealPlanService
from potluck.services.pagination import Page, parse_pagination
from potluck.services.post_service import PostService
from potluck.services.recipe_service import RecipeService
from potluck.services.storage import ObjectStorage
from potluck.services.tokens import Identity, TokenCodec
from potluck.services.user_service import UserService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ── Process-wide Components ───────────────────────────────────────────────

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


# ── Authentication Gate ───────────────────────────────────────────────────

async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenCodec = Depends(get_token_codec),
) -> Identity:
    if credentials is None:
        raise AuthenticationError(message="Missing or malformed Authorization header")
    try:
        identity = tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Rejected token on %s %s: %s", request.method, request.url.path, e.context)
        raise
    request.state.identity = identity
    return identity


# ── Services ──────────────────────────────────────────────────────────────

def get_media_service(
    session: AsyncSession = Depends(get_db_session),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> MediaAttachmentService:
    return MediaAttachmentService(session, storage, settings.max_upload_size)


def get_user_service(
    session: AsyncSession = Depends(get_db_session),
    media: MediaAttachmentService = Depends(get_media_service),
    tokens: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(session, media, tokens, bcrypt_rounds=settings.bcrypt_rounds)


def get_post_service(
    session: AsyncSession = Depends(get_db_session),
    media: MediaAttachmentService = Depends(get_media_service),
) -> PostService:
    return PostService(session, media)


def get_recipe_service(
    session: AsyncSession = Depends(get_db_session),
    media: MediaAttachmentService = Depends(get_media_service),
) -> RecipeService:
    return RecipeService(session, media)


def get_meal_plan_service(
    session: AsyncSession = Depends(get_db_session),
    media: MediaAttachmentService = Depends(get_media_service),
) -> MealPlanService:
    return MealPlanService(session, media)


# ── Request Helpers ───────────────────────────────────────────────────────

def get_page(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    settings: Settings = Depends(get_settings),
) -> Page:
    """Query parameters are taken as raw strings so bad values never 400."""
    return parse_pagination(
        limit,
        offset,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


async def read_upload(file: Optional[UploadFile]) -> Optional[MediaUpload]:
    """Read an UploadFile into memory and release it."""
    if file is None:
        return None
    try:
        content = await file.read()
        return MediaUpload(
            filename=file.filename or "",
            content=content,
            content_type=file.content_type or "",
            declared_size=file.size,
        )
    finally:
        await file.close()

"""
Potluck Backend: Post Service
==============================

What:  Create, read, list, update and delete posts.

Create Flow (POST /posts):
    validate title/body → check referenced recipe → upload media + media row
    → post row, all in one transaction. author_id comes from the token.

Update/Delete: OwnershipGuard first; a 403/404 means nothing was written.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.database import unit_of_work
from potluck.exceptions import NotFoundError, ValidationError
from potluck.models.post import Post
from potluck.models.recipe import Recipe
from potluck.schemas.common import PaginationMeta
from potluck.schemas.post import PostListResponse, PostResponse, PostUpdate
from potluck.services.media_service import (
    POST_KEY_TEMPLATE,
    MediaAttachmentService,
    MediaUpload,
)
from potluck.services.ownership import OwnershipGuard
from potluck.services.pagination import Page
from potluck.services.tokens import Identity

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, session: AsyncSession, media: MediaAttachmentService):
        self._session = session
        self._media = media
        self._guard = OwnershipGuard(session)

    async def create_post(
        self,
        identity: Identity,
        title: str,
        body: str,
        tags: str,
        upload: Optional[MediaUpload],
        recipe_id: Optional[UUID] = None,
    ) -> Post:
        """
        Raises:
            ValidationError: blank title/body, missing or bad media
            NotFoundError: recipe_id given but no such recipe
            UploadError: object store failure (nothing persisted)
        """
        missing = [name for name, value in (("title", title), ("body", body)) if not (value or "").strip()]
        if missing:
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                field=missing[0],
                context={"missing": missing},
            )
        if upload is None:
            raise ValidationError(message="Media file is required", field="media")
        self._media.validate(upload)

        if recipe_id is not None:
            exists = await self._session.scalar(select(Recipe.id).where(Recipe.id == recipe_id))
            if exists is None:
                raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

        async with unit_of_work(self._session, "create_post"):
            media = await self._media.attach(
                owner_id=identity.user_id,
                upload=upload,
                key_template=POST_KEY_TEMPLATE,
            )
            post = Post(
                id=uuid.uuid4(),
                author_id=identity.user_id,
                media_id=media.id,
                media_url=media.url,
                title=title.strip(),
                body=body,
                tags=(tags or "").strip(),
                recipe_id=recipe_id,
            )
            self._session.add(post)
            try:
                await self._session.flush()
            except SQLAlchemyError:
                await self._media.discard(media)
                raise

        logger.info("Post %s created by %s", post.id, identity.user_id)
        return post

    async def get_post(self, post_id: UUID) -> Post:
        post = await self._session.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def list_posts(self, page: Page) -> PostListResponse:
        """Newest first, with the total row count for pagination UIs."""
        total = await self._session.scalar(select(func.count()).select_from(Post)) or 0
        result = await self._session.scalars(
            select(Post)
            .order_by(Post.created_at.desc(), Post.id)
            .limit(page.limit)
            .offset(page.offset)
        )
        return PostListResponse(
            posts=[PostResponse.model_validate(p) for p in result.all()],
            pagination=PaginationMeta(total=total, limit=page.limit, offset=page.offset),
        )

    async def update_post(self, identity: Identity, post_id: UUID, changes: PostUpdate) -> Post:
        post = await self._guard.authorize(Post, post_id, identity, "post")

        async with unit_of_work(self._session, "update_post"):
            for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(post, field, value.strip() if field != "body" else value)
            post.updated_at = datetime.now(timezone.utc)
            await self._session.flush()

        logger.info("Post %s updated by %s", post.id, identity.user_id)
        return post

    async def delete_post(self, identity: Identity, post_id: UUID) -> None:
        await self._guard.authorize(Post, post_id, identity, "post")

        async with unit_of_work(self._session, "delete_post"):
            await self._session.execute(
                delete(Post)
                .where(Post.id == post_id)
                .execution_options(synchronize_session=False)
            )

        logger.info("Post %s deleted by %s", post_id, identity.user_id)

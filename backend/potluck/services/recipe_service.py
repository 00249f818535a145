"""
Potluck Backend: Recipe Service
================================

What:  Request-level rules around RecipeComposer: author assignment, media
       references, ownership checks and response shaping.

Recipes reference media that was uploaded beforehand (POST /api/media); the
media must exist and belong to the caller. Its URL is copied onto the
recipe row.
"""

import logging
import uuid
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from potluck.models.recipe import Recipe
from potluck.schemas.common import PaginationMeta
from potluck.schemas.recipe import (
    RecipeCreate,
    RecipeListResponse,
    RecipeResponse,
    RecipeUpdate,
)
from potluck.services.media_service import MediaAttachmentService
from potluck.services.ownership import OwnershipGuard
from potluck.services.pagination import Page
from potluck.services.recipe_composer import RecipeComposer
from potluck.services.tokens import Identity

logger = logging.getLogger(__name__)


class RecipeService:
    def __init__(self, session: AsyncSession, media: MediaAttachmentService):
        self._composer = RecipeComposer(session)
        self._guard = OwnershipGuard(session)
        self._media = media

    async def create_recipe(self, identity: Identity, payload: RecipeCreate) -> RecipeResponse:
        """
        Raises:
            NotFoundError: media_id does not exist
            AuthorizationError: media_id belongs to another user
            DatabaseError: the composite insert failed (rolled back)
        """
        media_id = media_url = None
        if payload.media_id is not None:
            media = await self._media.get_owned_media(payload.media_id, identity.user_id)
            media_id, media_url = media.id, media.url

        recipe = await self._composer.create_recipe(
            recipe_id=uuid.uuid4(),
            author_id=identity.user_id,
            payload=payload,
            media_id=media_id,
            media_url=media_url,
        )
        return RecipeResponse.model_validate(recipe)

    async def get_recipe(self, recipe_id: UUID) -> RecipeResponse:
        return RecipeResponse.model_validate(await self._composer.get_recipe(recipe_id))

    async def list_recipes(self, page: Page) -> RecipeListResponse:
        total = await self._composer.count_recipes()
        recipes = await self._composer.list_recipes(page)
        return RecipeListResponse(
            recipes=[RecipeResponse.model_validate(r) for r in recipes],
            pagination=PaginationMeta(total=total, limit=page.limit, offset=page.offset),
        )

    async def list_by_author(self, author_id: UUID) -> List[RecipeResponse]:
        recipes = await self._composer.list_recipes_by_author(author_id)
        return [RecipeResponse.model_validate(r) for r in recipes]

    async def update_recipe(
        self,
        identity: Identity,
        recipe_id: UUID,
        payload: RecipeUpdate,
    ) -> RecipeResponse:
        await self._guard.authorize(Recipe, recipe_id, identity, "recipe")
        recipe = await self._composer.update_recipe(recipe_id, payload)
        logger.info("Recipe %s updated by %s", recipe_id, identity.user_id)
        return RecipeResponse.model_validate(recipe)

    async def delete_recipe(self, identity: Identity, recipe_id: UUID) -> None:
        await self._guard.authorize(Recipe, recipe_id, identity, "recipe")
        await self._composer.delete_recipe(recipe_id)

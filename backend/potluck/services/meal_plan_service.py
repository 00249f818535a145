"""
Potluck Backend: Meal Plan Service
===================================

What:  Schedule recipes as meals. Reads join the optional photo so the
       response carries its URL; listing by an author with no plans returns
       an empty list, never 404.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.database import unit_of_work
from potluck.exceptions import NotFoundError
from potluck.models.meal_plan import MealPlan
from potluck.models.media import Media
from potluck.models.recipe import Recipe
from potluck.schemas.meal_plan import MealPlanCreate, MealPlanResponse, MealPlanUpdate
from potluck.services.media_service import MediaAttachmentService
from potluck.services.ownership import OwnershipGuard
from potluck.services.tokens import Identity

logger = logging.getLogger(__name__)


class MealPlanService:
    def __init__(self, session: AsyncSession, media: MediaAttachmentService):
        self._session = session
        self._media = media
        self._guard = OwnershipGuard(session)

    async def _require_recipe(self, recipe_id: UUID) -> None:
        exists = await self._session.scalar(select(Recipe.id).where(Recipe.id == recipe_id))
        if exists is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

    async def _photo_url(self, photo_id: Optional[UUID], identity: Identity) -> Optional[str]:
        if photo_id is None:
            return None
        media = await self._media.get_owned_media(photo_id, identity.user_id)
        return media.url

    def _with_photo(self):
        return select(MealPlan, Media.url).outerjoin(Media, MealPlan.photo_id == Media.id)

    async def create_meal_plan(self, identity: Identity, payload: MealPlanCreate) -> MealPlanResponse:
        """
        Raises:
            NotFoundError: recipe or photo does not exist
            AuthorizationError: photo belongs to another user
        """
        await self._require_recipe(payload.recipe_id)
        media_url = await self._photo_url(payload.photo_id, identity)

        async with unit_of_work(self._session, "create_meal_plan"):
            plan = MealPlan(
                id=uuid.uuid4(),
                recipe_id=payload.recipe_id,
                author_id=identity.user_id,
                meal_type=payload.meal_type,
                scheduled_date=payload.date,
                verified=payload.verified,
                photo_id=payload.photo_id,
            )
            self._session.add(plan)
            await self._session.flush()

        logger.info("Meal plan %s created by %s", plan.id, identity.user_id)
        return MealPlanResponse.from_model(plan, media_url)

    async def get_meal_plan(self, plan_id: UUID) -> MealPlanResponse:
        row = (await self._session.execute(self._with_photo().where(MealPlan.id == plan_id))).first()
        if row is None:
            raise NotFoundError(resource="meal plan", resource_id=str(plan_id))
        plan, media_url = row
        return MealPlanResponse.from_model(plan, media_url)

    async def list_by_author(self, author_id: UUID) -> List[MealPlanResponse]:
        result = await self._session.execute(
            self._with_photo()
            .where(MealPlan.author_id == author_id)
            .order_by(MealPlan.scheduled_date.desc(), MealPlan.created_at.desc())
        )
        return [MealPlanResponse.from_model(plan, url) for plan, url in result.all()]

    async def update_meal_plan(
        self,
        identity: Identity,
        plan_id: UUID,
        changes: MealPlanUpdate,
    ) -> MealPlanResponse:
        plan = await self._guard.authorize(MealPlan, plan_id, identity, "meal plan")

        fields = changes.model_dump(exclude_unset=True)
        if fields.get("recipe_id") is not None:
            await self._require_recipe(fields["recipe_id"])
        if "photo_id" in fields:
            media_url = await self._photo_url(fields["photo_id"], identity)
        elif plan.photo_id is not None:
            media_url = (await self._media.get_media(plan.photo_id)).url
        else:
            media_url = None

        async with unit_of_work(self._session, "update_meal_plan"):
            if fields.get("recipe_id") is not None:
                plan.recipe_id = fields["recipe_id"]
            if fields.get("meal_type") is not None:
                plan.meal_type = fields["meal_type"]
            if "date" in fields:
                plan.scheduled_date = fields["date"]
            if fields.get("verified") is not None:
                plan.verified = fields["verified"]
            if "photo_id" in fields:
                plan.photo_id = fields["photo_id"]
            plan.updated_at = datetime.now(timezone.utc)
            await self._session.flush()

        logger.info("Meal plan %s updated by %s", plan.id, identity.user_id)
        return MealPlanResponse.from_model(plan, media_url)

    async def delete_meal_plan(self, identity: Identity, plan_id: UUID) -> None:
        await self._guard.authorize(MealPlan, plan_id, identity, "meal plan")

        async with unit_of_work(self._session, "delete_meal_plan"):
            await self._session.execute(
                delete(MealPlan)
                .where(MealPlan.id == plan_id)
                .execution_options(synchronize_session=False)
            )
        logger.info("Meal plan %s deleted by %s", plan_id, identity.user_id)

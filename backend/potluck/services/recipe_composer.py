"""
Potluck Backend: Transactional Recipe Composer
===============================================

What:  The only multi-table write in the system: a recipe header plus its
       ordered ingredient and step rows.
How:   Each write runs inside one unit_of_work. Rows are flushed in a fixed
       order (header, ingredients, steps); the first failure rolls the whole
       transaction back, so readers never see a header without its children.

Update is a full replace: header fields are overwritten, every existing
ingredient and step row is deleted, and the new sets are inserted. The
header is re-read with SELECT ... FOR UPDATE first, so two concurrent
updates of one recipe run one after the other instead of interleaving their
delete/insert steps (PostgreSQL; SQLite serializes writers anyway).

Reads load the header and then the two child collections (selectin).
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.database import unit_of_work
from potluck.exceptions import NotFoundError, ValidationError
from potluck.models.meal_plan import MealPlan
from potluck.models.recipe import Recipe, RecipeIngredient, RecipeStep
from potluck.schemas.recipe import IngredientIn, RecipeUpdate, StepIn
from potluck.services.pagination import Page

logger = logging.getLogger(__name__)


def ingredient_rows(recipe_id: UUID, ingredients: Sequence[IngredientIn]) -> List[RecipeIngredient]:
    return [
        RecipeIngredient(
            recipe_id=recipe_id,
            position=position,
            name=item.name,
            quantity=item.quantity,
            unit=item.unit,
        )
        for position, item in enumerate(ingredients)
    ]


def step_rows(recipe_id: UUID, steps: Sequence[StepIn]) -> List[RecipeStep]:
    return [
        RecipeStep(
            recipe_id=recipe_id,
            step_order=step.step_order if step.step_order is not None else index,
            description=step.description,
        )
        for index, step in enumerate(steps, start=1)
    ]


def _recipe_in_use(recipe_id: UUID, plans: Optional[int] = None) -> ValidationError:
    context = {"recipe_id": str(recipe_id)}
    if plans is not None:
        context["meal_plans"] = plans
    return ValidationError(
        message="Recipe is scheduled in other users' meal plans and cannot be deleted",
        field="recipe_id",
        context=context,
    )


class RecipeComposer:
    def __init__(self, session: AsyncSession):
        self._session = session

    def _apply_header(self, recipe: Recipe, payload: RecipeUpdate) -> None:
        recipe.title = payload.title
        recipe.description = payload.description
        recipe.prep_time = payload.prep_time
        recipe.cook_time = payload.cook_time
        recipe.total_time = payload.total_time
        recipe.servings = payload.servings

    async def _insert_children(self, recipe_id: UUID, payload: RecipeUpdate) -> None:
        self._session.add_all(ingredient_rows(recipe_id, payload.ingredients))
        await self._session.flush()
        self._session.add_all(step_rows(recipe_id, payload.steps))
        await self._session.flush()

    async def create_recipe(
        self,
        recipe_id: UUID,
        author_id: UUID,
        payload: RecipeUpdate,
        media_id: Optional[UUID] = None,
        media_url: Optional[str] = None,
    ) -> Recipe:
        """
        Insert header, ingredients and steps atomically.

        Raises:
            DatabaseError: any insert failed; nothing was committed
        """
        async with unit_of_work(self._session, "create_recipe"):
            recipe = Recipe(
                id=recipe_id,
                author_id=author_id,
                media_id=media_id,
                media_url=media_url,
            )
            self._apply_header(recipe, payload)
            self._session.add(recipe)
            await self._session.flush()
            await self._insert_children(recipe_id, payload)

        logger.info(
            "Recipe %s created with %d ingredients, %d steps",
            recipe_id,
            len(payload.ingredients),
            len(payload.steps),
        )
        return await self.get_recipe(recipe_id)

    async def update_recipe(self, recipe_id: UUID, payload: RecipeUpdate) -> Recipe:
        """
        Replace header fields and the full ingredient/step sets atomically.

        Raises:
            NotFoundError: the recipe disappeared before the lock was taken
            DatabaseError: any statement failed; nothing was committed
        """
        async with unit_of_work(self._session, "update_recipe"):
            recipe = await self._session.scalar(
                select(Recipe)
                .where(Recipe.id == recipe_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            if recipe is None:
                raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

            self._apply_header(recipe, payload)
            recipe.updated_at = datetime.now(timezone.utc)

            await self._session.execute(
                delete(RecipeIngredient)
                .where(RecipeIngredient.recipe_id == recipe_id)
                .execution_options(synchronize_session=False)
            )
            await self._session.execute(
                delete(RecipeStep)
                .where(RecipeStep.recipe_id == recipe_id)
                .execution_options(synchronize_session=False)
            )
            await self._session.flush()
            await self._insert_children(recipe_id, payload)

        logger.info("Recipe %s replaced", recipe_id)
        return await self.get_recipe(recipe_id)

    async def delete_recipe(self, recipe_id: UUID) -> None:
        """
        Remove the recipe, its children and the author's own meal plans for it.

        Meal plans belong to whoever scheduled them, so a recipe still on
        someone else's plan is kept (the meal_plans foreign key is RESTRICT).

        Raises:
            NotFoundError: the recipe disappeared before the lock was taken
            ValidationError: another user's meal plan still references it
            DatabaseError: any statement failed; nothing was committed
        """
        async with unit_of_work(self._session, "delete_recipe"):
            author_id = await self._session.scalar(
                select(Recipe.author_id).where(Recipe.id == recipe_id).with_for_update()
            )
            if author_id is None:
                raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

            foreign_plans = await self._session.scalar(
                select(func.count())
                .select_from(MealPlan)
                .where(MealPlan.recipe_id == recipe_id, MealPlan.author_id != author_id)
            )
            if foreign_plans:
                raise _recipe_in_use(recipe_id, foreign_plans)

            await self._session.execute(
                delete(MealPlan)
                .where(MealPlan.recipe_id == recipe_id, MealPlan.author_id == author_id)
                .execution_options(synchronize_session=False)
            )
            for model in (RecipeStep, RecipeIngredient):
                await self._session.execute(
                    delete(model)
                    .where(model.recipe_id == recipe_id)
                    .execution_options(synchronize_session=False)
                )
            try:
                await self._session.execute(
                    delete(Recipe)
                    .where(Recipe.id == recipe_id)
                    .execution_options(synchronize_session=False)
                )
            except IntegrityError as e:
                # A plan was scheduled between the count and the delete
                raise _recipe_in_use(recipe_id) from e
        logger.info("Recipe %s deleted", recipe_id)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_recipe(self, recipe_id: UUID) -> Recipe:
        recipe = await self._session.scalar(
            select(Recipe)
            .where(Recipe.id == recipe_id)
            .execution_options(populate_existing=True)
        )
        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return recipe

    async def list_recipes(self, page: Page) -> List[Recipe]:
        result = await self._session.scalars(
            select(Recipe)
            .order_by(Recipe.created_at.desc(), Recipe.id)
            .limit(page.limit)
            .offset(page.offset)
        )
        return list(result.all())

    async def count_recipes(self) -> int:
        return await self._session.scalar(select(func.count()).select_from(Recipe)) or 0

    async def list_recipes_by_author(self, author_id: UUID) -> List[Recipe]:
        result = await self._session.scalars(
            select(Recipe)
            .where(Recipe.author_id == author_id)
            .order_by(Recipe.created_at.desc(), Recipe.id)
        )
        return list(result.all())

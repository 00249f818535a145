"""
Potluck Backend: Transactional Recipe Composer Tests
=====================================================

What we test:
    ✅ Create writes header, ingredients (in order) and steps together
    ✅ Missing step_order falls back to the 1-based position
    ✅ A failing child insert rolls back the header too
    ✅ Update replaces both child sets exactly; no leftover rows
    ✅ A failing update leaves the previous version intact
    ✅ Delete removes header and children
"""

import uuid

import pytest
from sqlalchemy import func, select

from potluck.exceptions import DatabaseError, NotFoundError
from potluck.models.recipe import Recipe, RecipeIngredient, RecipeStep
from potluck.schemas.recipe import IngredientIn, RecipeUpdate, StepIn
from potluck.services.pagination import Page
from potluck.services.recipe_composer import RecipeComposer, step_rows


def _payload(**overrides) -> RecipeUpdate:
    data = {
        "title": "Shakshuka",
        "description": "Eggs poached in spiced tomato sauce",
        "ingredients": [
            {"name": "eggs", "quantity": 4, "unit": "pcs"},
            {"name": "tomatoes", "quantity": 800, "unit": "g"},
            {"name": "cumin", "quantity": 1, "unit": "tsp"},
        ],
        "steps": [
            {"step_order": 1, "description": "Simmer the tomatoes with cumin"},
            {"step_order": 2, "description": "Crack in the eggs and cover"},
        ],
        "prep_time": 10,
        "cook_time": 20,
        "servings": 2,
    }
    data.update(overrides)
    return RecipeUpdate(**data)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestCreateRecipe:
    @pytest.mark.asyncio
    async def test_header_and_children_are_written(self, session):
        composer = RecipeComposer(session)
        author = uuid.uuid4()

        recipe = await composer.create_recipe(uuid.uuid4(), author, _payload())

        assert recipe.author_id == author
        assert [i.name for i in recipe.ingredients] == ["eggs", "tomatoes", "cumin"]
        assert [s.step_order for s in recipe.steps] == [1, 2]
        assert await _count(session, RecipeIngredient) == 3
        assert await _count(session, RecipeStep) == 2

    def test_step_order_defaults_to_position(self):
        rows = step_rows(uuid.uuid4(), [StepIn(description="a"), StepIn(description="b")])
        assert [r.step_order for r in rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_failing_child_insert_rolls_back_everything(self, session):
        composer = RecipeComposer(session)
        payload = _payload()
        # Bypasses validation so the NOT NULL constraint fails at flush time
        broken = IngredientIn.model_construct(name=None, quantity=1.0, unit="g")
        payload = payload.model_copy(update={"ingredients": payload.ingredients + [broken]})

        with pytest.raises(DatabaseError) as exc_info:
            await composer.create_recipe(uuid.uuid4(), uuid.uuid4(), payload)

        assert exc_info.value.context["operation"] == "create_recipe"
        assert await _count(session, Recipe) == 0
        assert await _count(session, RecipeIngredient) == 0
        assert await _count(session, RecipeStep) == 0


class TestUpdateRecipe:
    @pytest.mark.asyncio
    async def test_full_replace_leaves_no_old_rows(self, session):
        composer = RecipeComposer(session)
        recipe_id = uuid.uuid4()
        await composer.create_recipe(recipe_id, uuid.uuid4(), _payload())

        updated = await composer.update_recipe(
            recipe_id,
            _payload(
                title="Green Shakshuka",
                ingredients=[{"name": "spinach", "quantity": 200, "unit": "g"}],
                steps=[{"description": "Wilt the spinach"}],
            ),
        )

        assert updated.title == "Green Shakshuka"
        assert [i.name for i in updated.ingredients] == ["spinach"]
        assert [(s.step_order, s.description) for s in updated.steps] == [(1, "Wilt the spinach")]
        assert await _count(session, RecipeIngredient) == 1
        assert await _count(session, RecipeStep) == 1

    @pytest.mark.asyncio
    async def test_failed_update_keeps_previous_version(self, session):
        composer = RecipeComposer(session)
        recipe_id = uuid.uuid4()
        await composer.create_recipe(recipe_id, uuid.uuid4(), _payload())

        payload = _payload(title="Broken")
        broken = StepIn.model_construct(step_order=1, description=None)
        payload = payload.model_copy(update={"steps": [broken]})

        with pytest.raises(DatabaseError):
            await composer.update_recipe(recipe_id, payload)

        recipe = await composer.get_recipe(recipe_id)
        assert recipe.title == "Shakshuka"
        assert len(recipe.ingredients) == 3
        assert len(recipe.steps) == 2

    @pytest.mark.asyncio
    async def test_unknown_recipe_is_not_found(self, session):
        with pytest.raises(NotFoundError):
            await RecipeComposer(session).update_recipe(uuid.uuid4(), _payload())


class TestDeleteAndRead:
    @pytest.mark.asyncio
    async def test_delete_removes_children(self, session):
        composer = RecipeComposer(session)
        recipe_id = uuid.uuid4()
        await composer.create_recipe(recipe_id, uuid.uuid4(), _payload())

        await composer.delete_recipe(recipe_id)

        assert await _count(session, Recipe) == 0
        assert await _count(session, RecipeIngredient) == 0
        assert await _count(session, RecipeStep) == 0
        with pytest.raises(NotFoundError):
            await composer.get_recipe(recipe_id)

    @pytest.mark.asyncio
    async def test_list_and_count(self, session):
        composer = RecipeComposer(session)
        author = uuid.uuid4()
        for title in ("Dal", "Pho", "Mole"):
            await composer.create_recipe(uuid.uuid4(), author, _payload(title=title))
        await composer.create_recipe(uuid.uuid4(), uuid.uuid4(), _payload(title="Ragu"))

        assert await composer.count_recipes() == 4
        assert len(await composer.list_recipes(Page(limit=2, offset=0))) == 2
        assert len(await composer.list_recipes(Page(limit=10, offset=3))) == 1
        by_author = await composer.list_recipes_by_author(author)
        assert sorted(r.title for r in by_author) == ["Dal", "Mole", "Pho"]

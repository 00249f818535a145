"""
Potluck Backend: Meal Plan API Tests
=====================================

What we test:
    ✅ Create with a recipe, meal type, date and own photo
    ✅ recipe_id / meal_type missing or invalid → 400; unknown recipe → 404
    ✅ Listing an author without plans → 200 []
    ✅ Owner-only update and delete
    ✅ Deleting a recipe never removes another user's meal plan
"""

import uuid

import pytest
import pytest_asyncio

from conftest import JPEG_BYTES


async def _recipe_id(client, user) -> str:
    response = await client.post(
        "/api/recipes",
        json={"title": "Porridge", "ingredients": [{"name": "oats"}], "steps": [{"description": "Stir"}]},
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def _photo(client, user) -> dict:
    response = await client.post(
        "/api/media",
        files={"media": ("breakfast.jpg", JPEG_BYTES, "image/jpeg")},
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_plan(client, user, **overrides):
    payload = {
        "recipe_id": await _recipe_id(client, user),
        "meal_type": "breakfast",
        "date": "2026-11-02",
    }
    payload.update(overrides)
    return await client.post("/api/meal-plans", json=payload, headers=user["headers"])


class TestCreateMealPlan:
    @pytest.mark.asyncio
    async def test_create_with_photo(self, test_client, alice):
        photo = await _photo(test_client, alice)

        response = await create_plan(test_client, alice, photo_id=photo["id"], verified=True)

        assert response.status_code == 201
        body = response.json()
        assert body["author_id"] == str(alice["id"])
        assert body["meal_type"] == "breakfast"
        assert body["date"] == "2026-11-02"
        assert body["verified"] is True
        assert body["media_url"] == photo["url"]

    @pytest.mark.asyncio
    async def test_missing_recipe_id(self, test_client, alice):
        response = await test_client.post(
            "/api/meal-plans", json={"meal_type": "lunch"}, headers=alice["headers"]
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_meal_type(self, test_client, alice):
        response = await create_plan(test_client, alice, meal_type="brunch")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_recipe(self, test_client, alice):
        response = await test_client.post(
            "/api/meal-plans",
            json={"recipe_id": str(uuid.uuid4()), "meal_type": "dinner"},
            headers=alice["headers"],
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_someone_elses_photo(self, test_client, alice, bob):
        photo = await _photo(test_client, bob)
        response = await create_plan(test_client, alice, photo_id=photo["id"])
        assert response.status_code == 403


class TestReadMealPlans:
    @pytest.mark.asyncio
    async def test_unknown_author_gets_empty_list(self, test_client, alice):
        response = await test_client.get(
            f"/api/meal-plans/author/{uuid.uuid4()}", headers=alice["headers"]
        )
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_list_by_author(self, test_client, alice, bob):
        await create_plan(test_client, alice)
        await create_plan(test_client, alice, meal_type="dinner")
        await create_plan(test_client, bob)

        response = await test_client.get(
            f"/api/meal-plans/author/{alice['id']}", headers=bob["headers"]
        )

        assert response.status_code == 200
        assert sorted(p["meal_type"] for p in response.json()) == ["breakfast", "dinner"]

    @pytest.mark.asyncio
    async def test_get_by_id(self, test_client, alice):
        plan_id = (await create_plan(test_client, alice)).json()["id"]
        response = await test_client.get(f"/api/meal-plans/{plan_id}", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["media_url"] is None

    @pytest.mark.asyncio
    async def test_get_unknown(self, test_client, alice):
        response = await test_client.get(f"/api/meal-plans/{uuid.uuid4()}", headers=alice["headers"])
        assert response.status_code == 404


class TestMutateMealPlans:
    @pytest.mark.asyncio
    async def test_owner_updates(self, test_client, alice):
        plan_id = (await create_plan(test_client, alice)).json()["id"]
        photo = await _photo(test_client, alice)

        response = await test_client.put(
            f"/api/meal-plans/{plan_id}",
            json={"meal_type": "snack", "verified": True, "photo_id": photo["id"]},
            headers=alice["headers"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["meal_type"] == "snack"
        assert body["verified"] is True
        assert body["date"] == "2026-11-02"
        assert body["media_url"] == photo["url"]

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, test_client, alice, bob):
        plan_id = (await create_plan(test_client, alice)).json()["id"]

        response = await test_client.put(
            f"/api/meal-plans/{plan_id}", json={"verified": True}, headers=bob["headers"]
        )

        assert response.status_code == 403
        stored = await test_client.get(f"/api/meal-plans/{plan_id}", headers=alice["headers"])
        assert stored.json()["verified"] is False

    @pytest.mark.asyncio
    async def test_owner_deletes(self, test_client, alice):
        plan_id = (await create_plan(test_client, alice)).json()["id"]

        response = await test_client.delete(f"/api/meal-plans/{plan_id}", headers=alice["headers"])

        assert response.status_code == 204
        assert (await test_client.get(f"/api/meal-plans/{plan_id}", headers=alice["headers"])).status_code == 404

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, test_client, alice, bob):
        plan_id = (await create_plan(test_client, alice)).json()["id"]
        response = await test_client.delete(f"/api/meal-plans/{plan_id}", headers=bob["headers"])
        assert response.status_code == 403


@pytest_asyncio.fixture
async def enforce_foreign_keys(app):
    """SQLite ignores foreign keys unless asked; PostgreSQL always enforces them."""
    # StaticPool: one connection shared by the whole app
    async with app.state.engine.connect() as conn:
        await conn.exec_driver_sql("PRAGMA foreign_keys=ON")


class TestRecipeDeletionKeepsOtherPlans:
    @pytest.mark.asyncio
    async def test_recipe_on_someone_elses_plan_is_kept(
        self, enforce_foreign_keys, test_client, alice, bob
    ):
        recipe_id = await _recipe_id(test_client, alice)
        plan = await test_client.post(
            "/api/meal-plans",
            json={"recipe_id": recipe_id, "meal_type": "dinner"},
            headers=bob["headers"],
        )
        assert plan.status_code == 201, plan.text

        response = await test_client.delete(f"/api/recipes/{recipe_id}", headers=alice["headers"])

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        plan_id = plan.json()["id"]
        kept = await test_client.get(f"/api/meal-plans/{plan_id}", headers=bob["headers"])
        assert kept.status_code == 200
        assert kept.json()["recipe_id"] == recipe_id
        assert (await test_client.get(f"/api/recipes/{recipe_id}", headers=alice["headers"])).status_code == 200

    @pytest.mark.asyncio
    async def test_authors_own_plans_go_with_the_recipe(self, enforce_foreign_keys, test_client, alice):
        plan = await create_plan(test_client, alice)
        recipe_id = plan.json()["recipe_id"]

        response = await test_client.delete(f"/api/recipes/{recipe_id}", headers=alice["headers"])

        assert response.status_code == 204
        plan_id = plan.json()["id"]
        assert (await test_client.get(f"/api/meal-plans/{plan_id}", headers=alice["headers"])).status_code == 404
        assert (await test_client.get(f"/api/recipes/{recipe_id}", headers=alice["headers"])).status_code == 404

    @pytest.mark.asyncio
    async def test_plan_freed_recipe_can_be_deleted(self, enforce_foreign_keys, test_client, alice, bob):
        recipe_id = await _recipe_id(test_client, alice)
        plan = await test_client.post(
            "/api/meal-plans",
            json={"recipe_id": recipe_id, "meal_type": "lunch"},
            headers=bob["headers"],
        )
        plan_id = plan.json()["id"]
        await test_client.delete(f"/api/meal-plans/{plan_id}", headers=bob["headers"])

        response = await test_client.delete(f"/api/recipes/{recipe_id}", headers=alice["headers"])

        assert response.status_code == 204

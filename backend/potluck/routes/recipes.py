"""
Potluck Backend: Recipe Routes
===============================

JSON in, JSON out. A recipe is written together with its ingredients and
steps in one transaction (see services/recipe_composer.py); updates replace
both lists entirely.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from potluck.dependencies import get_current_identity, get_page, get_recipe_service
from potluck.schemas.common import ErrorResponse
from potluck.schemas.recipe import (
    RecipeCreate,
    RecipeListResponse,
    RecipeResponse,
    RecipeUpdate,
)
from potluck.services.pagination import Page
from potluck.services.recipe_service import RecipeService
from potluck.services.tokens import Identity

router = APIRouter(
    prefix="/api/recipes",
    tags=["Recipes"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=201,
    responses={
        400: {"description": "Invalid recipe payload", "model": ErrorResponse},
        403: {"description": "media_id belongs to another user", "model": ErrorResponse},
        404: {"description": "media_id not found", "model": ErrorResponse},
    },
    summary="Create a recipe with its ingredients and steps",
)
async def create_recipe(
    payload: RecipeCreate,
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    return await recipes.create_recipe(identity, payload)


@router.get("", response_model=RecipeListResponse, summary="List recipes, newest first")
async def list_recipes(
    page: Page = Depends(get_page),
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeListResponse:
    return await recipes.list_recipes(page)


@router.get("/author/{author_id}", response_model=List[RecipeResponse])
async def list_recipes_by_author(
    author_id: UUID,
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> List[RecipeResponse]:
    return await recipes.list_by_author(author_id)


@router.get(
    "/{recipe_id}",
    response_model=RecipeResponse,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
)
async def get_recipe(
    recipe_id: UUID,
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    return await recipes.get_recipe(recipe_id)


@router.put(
    "/{recipe_id}",
    response_model=RecipeResponse,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
    },
    summary="Replace a recipe, including all ingredients and steps",
)
async def update_recipe(
    recipe_id: UUID,
    payload: RecipeUpdate,
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    return await recipes.update_recipe(identity, recipe_id, payload)


@router.delete(
    "/{recipe_id}",
    status_code=204,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
    },
)
async def delete_recipe(
    recipe_id: UUID,
    identity: Identity = Depends(get_current_identity),
    recipes: RecipeService = Depends(get_recipe_service),
) -> Response:
    await recipes.delete_recipe(identity, recipe_id)
    return Response(status_code=204)

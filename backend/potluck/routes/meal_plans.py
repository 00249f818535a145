"""Meal plan routes: schedule a recipe for a day and meal slot."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from potluck.dependencies import get_current_identity, get_meal_plan_service
from potluck.schemas.common import ErrorResponse
from potluck.schemas.meal_plan import MealPlanCreate, MealPlanResponse, MealPlanUpdate
from potluck.services.meal_plan_service import MealPlanService
from potluck.services.tokens import Identity

router = APIRouter(
    prefix="/api/meal-plans",
    tags=["Meal Plans"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


@router.post(
    "",
    response_model=MealPlanResponse,
    status_code=201,
    responses={
        400: {"description": "recipe_id or meal_type missing/invalid", "model": ErrorResponse},
        404: {"description": "Recipe or photo not found", "model": ErrorResponse},
    },
)
async def create_meal_plan(
    payload: MealPlanCreate,
    identity: Identity = Depends(get_current_identity),
    plans: MealPlanService = Depends(get_meal_plan_service),
) -> MealPlanResponse:
    return await plans.create_meal_plan(identity, payload)


@router.get(
    "/author/{author_id}",
    response_model=List[MealPlanResponse],
    summary="List an author's meal plans (empty list when there are none)",
)
async def list_meal_plans_by_author(
    author_id: UUID,
    identity: Identity = Depends(get_current_identity),
    plans: MealPlanService = Depends(get_meal_plan_service),
) -> List[MealPlanResponse]:
    return await plans.list_by_author(author_id)


@router.get(
    "/{plan_id}",
    response_model=MealPlanResponse,
    responses={404: {"description": "Meal plan not found", "model": ErrorResponse}},
)
async def get_meal_plan(
    plan_id: UUID,
    identity: Identity = Depends(get_current_identity),
    plans: MealPlanService = Depends(get_meal_plan_service),
) -> MealPlanResponse:
    return await plans.get_meal_plan(plan_id)


@router.put(
    "/{plan_id}",
    response_model=MealPlanResponse,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Meal plan not found", "model": ErrorResponse},
    },
)
async def update_meal_plan(
    plan_id: UUID,
    changes: MealPlanUpdate,
    identity: Identity = Depends(get_current_identity),
    plans: MealPlanService = Depends(get_meal_plan_service),
) -> MealPlanResponse:
    return await plans.update_meal_plan(identity, plan_id, changes)


@router.delete(
    "/{plan_id}",
    status_code=204,
    responses={
        403: {"description": "Not the author", "model": ErrorResponse},
        404: {"description": "Meal plan not found", "model": ErrorResponse},
    },
)
async def delete_meal_plan(
    plan_id: UUID,
    identity: Identity = Depends(get_current_identity),
    plans: MealPlanService = Depends(get_meal_plan_service),
) -> Response:
    await plans.delete_meal_plan(identity, plan_id)
    return Response(status_code=204)

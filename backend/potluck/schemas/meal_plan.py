"""Meal plan API schemas."""

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from potluck.models.meal_plan import MealPlan, MealType


class MealPlanCreate(BaseModel):
    recipe_id: UUID
    meal_type: MealType
    date: Optional[dt.date] = None
    verified: bool = False
    photo_id: Optional[UUID] = None


class MealPlanUpdate(BaseModel):
    """Partial update. Omitted fields keep their current value."""
    recipe_id: Optional[UUID] = None
    meal_type: Optional[MealType] = None
    date: Optional[dt.date] = None
    verified: Optional[bool] = None
    photo_id: Optional[UUID] = None


class MealPlanResponse(BaseModel):
    id: UUID
    recipe_id: UUID
    author_id: UUID
    meal_type: MealType
    date: Optional[dt.date] = None
    verified: bool
    photo_id: Optional[UUID] = None
    media_url: Optional[str] = Field(default=None, description="URL of the photo, if any")
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_model(cls, plan: MealPlan, media_url: Optional[str] = None) -> "MealPlanResponse":
        return cls(
            id=plan.id,
            recipe_id=plan.recipe_id,
            author_id=plan.author_id,
            meal_type=plan.meal_type,
            date=plan.scheduled_date,
            verified=plan.verified,
            photo_id=plan.photo_id,
            media_url=media_url,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )

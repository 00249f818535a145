"""
Potluck Backend: Recipe API Schemas
====================================

Request bodies are JSON. Durations are whole minutes. Any `author_id` the
client sends is dropped by Pydantic (unknown fields are ignored); the author
always comes from the bearer token.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from potluck.schemas.common import PaginationMeta


def _require_text(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


# ── Request Models ────────────────────────────────────────────────────────

class IngredientIn(BaseModel):
    name: str = Field(..., max_length=255)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _require_text(v)


class StepIn(BaseModel):
    # Defaults to the 1-based position in the list when omitted
    step_order: Optional[int] = Field(default=None, ge=1)
    description: str

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        return _require_text(v)


class RecipeUpdate(BaseModel):
    """Full replacement of a recipe's header, ingredients and steps."""
    title: str = Field(..., max_length=255)
    description: str = Field(default="")
    ingredients: List[IngredientIn] = Field(default_factory=list)
    steps: List[StepIn] = Field(default_factory=list)
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    total_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _require_text(v)


class RecipeCreate(RecipeUpdate):
    # Previously uploaded media (POST /api/media) owned by the caller
    media_id: Optional[UUID] = None


# ── Response Models ───────────────────────────────────────────────────────

class IngredientResponse(BaseModel):
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None

    model_config = {"from_attributes": True}


class StepResponse(BaseModel):
    step_order: int
    description: str

    model_config = {"from_attributes": True}


class RecipeResponse(BaseModel):
    id: UUID
    author_id: UUID
    title: str
    description: str
    ingredients: List[IngredientResponse]
    steps: List[StepResponse]
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    total_time: Optional[int] = None
    servings: Optional[int] = None
    media_id: Optional[UUID] = None
    media_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RecipeListResponse(BaseModel):
    recipes: List[RecipeResponse]
    pagination: PaginationMeta

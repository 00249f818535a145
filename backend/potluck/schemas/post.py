"""
Potluck Backend: Post API Schemas
==================================

Posts are created from a multipart form (see routes/posts.py), so there is no
create schema here. Updates are JSON and only touch the fields provided.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from potluck.schemas.common import PaginationMeta


class PostResponse(BaseModel):
    id: UUID
    author_id: UUID
    media_id: UUID
    media_url: str
    title: str
    body: str
    tags: str
    recipe_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PostListResponse(BaseModel):
    posts: List[PostResponse]
    pagination: PaginationMeta


class PostUpdate(BaseModel):
    """Partial update. Omitted fields keep their current value."""
    title: Optional[str] = Field(default=None, max_length=255)
    body: Optional[str] = Field(default=None)
    tags: Optional[str] = Field(default=None, max_length=512)

    @field_validator("title", "body")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v

"""User and login API schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""
    id: UUID
    name: str
    username: str
    email: str
    date_of_birth: str
    media_id: Optional[UUID] = None
    media_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str = Field(..., description="Bearer token valid for 24 hours")

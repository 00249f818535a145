"""Media asset API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from potluck.models.media import MediaType


class MediaResponse(BaseModel):
    id: UUID
    url: str
    media_type: MediaType
    author_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}

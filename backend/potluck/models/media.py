"""
Potluck Backend: Media SQLAlchemy Model
========================================

What:  Metadata row for a binary object stored in the object store.
When:  Inserted by MediaAttachmentService right after a successful upload,
       always before the user/post/recipe/meal plan that references it.

The binary itself never touches the database. `url` is the public URL
returned by the storage backend; `object_key` lets a failed write delete the
object again.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from potluck.database import Base


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class Media(Base):
    __tablename__ = "media"

    id: Mapped[uuid.UUID] = mapped_column(
        "media_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    media_type: Mapped[MediaType] = mapped_column(
        Enum(
            MediaType,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    object_key: Mapped[str] = mapped_column(String(1024), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_media_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Media(id={self.id}, type='{self.media_type.value}', author_id={self.author_id})>"

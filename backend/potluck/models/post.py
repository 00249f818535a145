"""
Potluck Backend: Post SQLAlchemy Model
=======================================

What:  A published post: text plus one required media attachment, optionally
       pointing at a recipe.

Query patterns:
    - Feed: ORDER BY created_at DESC LIMIT/OFFSET → idx_posts_created_at
    - Ownership check: primary key lookup, compare author_id
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from potluck.database import Base


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        "post_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    # Set from the authenticated identity at creation; never updated
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    media_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("media.media_id", ondelete="RESTRICT"),
        nullable=False,
    )
    media_url: Mapped[str] = mapped_column(String(1024), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    # Free-text, e.g. "vegan, quick"
    tags: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    recipe_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("recipes.recipe_id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
        Index("idx_posts_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author_id={self.author_id}, title='{self.title}')>"

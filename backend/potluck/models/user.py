"""
Potluck Backend: User SQLAlchemy Model
=======================================

What:  A registered identity. Created at signup, never deleted.

The profile picture is stored inline (media_id + media_url) so reading a
user never needs a join. The password column holds a bcrypt hash only.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from potluck.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    # Stored as the string the client sent; no calendar validation
    date_of_birth: Mapped[str] = mapped_column(String(32), nullable=False)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)

    media_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("media.media_id", ondelete="SET NULL"),
        nullable=True,
    )
    media_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"

"""
Potluck Backend: Meal Plan SQLAlchemy Model
============================================

What:  A recipe scheduled for a meal on a given date, owned by one user.
       `verified` marks that the meal was actually cooked; `photo_id`
       optionally points at a picture of the result.
"""

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from potluck.database import Base


class MealType(str, enum.Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        "meal_plan_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.recipe_id", ondelete="RESTRICT"),
        nullable=False,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    meal_type: Mapped[MealType] = mapped_column(
        Enum(
            MealType,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    scheduled_date: Mapped[date | None] = mapped_column("date", Date, nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    photo_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("media.media_id", ondelete="SET NULL"),
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
        Index("idx_meal_plans_author_date", "author_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<MealPlan(id={self.id}, meal_type='{self.meal_type.value}', date={self.scheduled_date})>"

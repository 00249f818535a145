"""
Potluck Backend: Recipe SQLAlchemy Models
==========================================

What:  A recipe header plus its ordered ingredient and step rows.

The three tables are only ever written together by RecipeComposer, inside a
single transaction. The relationships below are read-only; they load with
"selectin", i.e. one header query followed by one query per child table.

Durations are whole minutes.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from potluck.database import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[uuid.UUID] = mapped_column(
        "recipe_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    prep_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cook_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    servings: Mapped[int | None] = mapped_column(Integer, nullable=True)

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

    ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        viewonly=True,
        lazy="selectin",
        order_by="RecipeIngredient.position",
    )
    steps: Mapped[List["RecipeStep"]] = relationship(
        viewonly=True,
        lazy="selectin",
        order_by="RecipeStep.step_order",
    )

    __table_args__ = (
        Index("idx_recipes_created_at", created_at.desc()),
        Index("idx_recipes_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, author_id={self.author_id}, title='{self.title}')>"


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    # UUID keys: a full-replace update never reuses an identity still held
    # by the session
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.recipe_id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("idx_recipe_ingredients_recipe_id", "recipe_id"),
    )


class RecipeStep(Base):
    __tablename__ = "recipe_steps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.recipe_id", ondelete="CASCADE"),
        nullable=False,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_recipe_steps_recipe_id", "recipe_id"),
    )

"""Create core tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  users, media, posts, recipes (+ ingredients, steps) and meal_plans.

Order matters: media first (users.media_id points at it), then users,
recipes, the recipe child tables, posts and meal_plans.
media.author_id has no foreign key: a profile picture is stored before the
user row that owns it exists.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "media",
        sa.Column("media_id", sa.Uuid(), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column(
            "media_type",
            sa.String(16),
            nullable=False,
            comment="image or video",
        ),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column(
            "object_key",
            sa.String(1024),
            nullable=False,
            comment="Key in the object store, used to delete orphaned uploads",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("media_id"),
    )
    op.create_index("idx_media_author_id", "media", ["author_id"])

    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("date_of_birth", sa.String(32), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("media_id", sa.Uuid(), nullable=True),
        sa.Column("media_url", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("email"),
        sa.ForeignKeyConstraint(["media_id"], ["media.media_id"], ondelete="SET NULL"),
    )

    op.create_table(
        "recipes",
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("prep_time", sa.Integer(), nullable=True, comment="minutes"),
        sa.Column("cook_time", sa.Integer(), nullable=True, comment="minutes"),
        sa.Column("total_time", sa.Integer(), nullable=True, comment="minutes"),
        sa.Column("servings", sa.Integer(), nullable=True),
        sa.Column("media_id", sa.Uuid(), nullable=True),
        sa.Column("media_url", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("recipe_id"),
        sa.ForeignKeyConstraint(["author_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["media_id"], ["media.media_id"], ondelete="SET NULL"),
    )
    op.create_index("idx_recipes_created_at", "recipes", [sa.text("created_at DESC")])
    op.create_index("idx_recipes_author_id", "recipes", ["author_id"])

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.recipe_id"], ondelete="CASCADE"),
    )
    op.create_index("idx_recipe_ingredients_recipe_id", "recipe_ingredients", ["recipe_id"])

    op.create_table(
        "recipe_steps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.recipe_id"], ondelete="CASCADE"),
    )
    op.create_index("idx_recipe_steps_recipe_id", "recipe_steps", ["recipe_id"])

    op.create_table(
        "posts",
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("media_id", sa.Uuid(), nullable=False),
        sa.Column("media_url", sa.String(1024), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tags", sa.String(512), nullable=False, server_default=sa.text("''")),
        sa.Column("recipe_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("post_id"),
        sa.ForeignKeyConstraint(["author_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["media_id"], ["media.media_id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.recipe_id"], ondelete="SET NULL"),
    )
    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])
    op.create_index("idx_posts_author_id", "posts", ["author_id"])

    op.create_table(
        "meal_plans",
        sa.Column("meal_plan_id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column(
            "meal_type",
            sa.String(16),
            nullable=False,
            comment="breakfast, lunch, dinner or snack",
        ),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("photo_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("meal_plan_id"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.recipe_id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["author_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["photo_id"], ["media.media_id"], ondelete="SET NULL"),
    )
    op.create_index("idx_meal_plans_author_date", "meal_plans", ["author_id", "date"])


def downgrade() -> None:
    op.drop_index("idx_meal_plans_author_date", table_name="meal_plans")
    op.drop_table("meal_plans")
    op.drop_index("idx_posts_author_id", table_name="posts")
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_table("posts")
    op.drop_index("idx_recipe_steps_recipe_id", table_name="recipe_steps")
    op.drop_table("recipe_steps")
    op.drop_index("idx_recipe_ingredients_recipe_id", table_name="recipe_ingredients")
    op.drop_table("recipe_ingredients")
    op.drop_index("idx_recipes_author_id", table_name="recipes")
    op.drop_index("idx_recipes_created_at", table_name="recipes")
    op.drop_table("recipes")
    op.drop_table("users")
    op.drop_index("idx_media_author_id", table_name="media")
    op.drop_table("media")

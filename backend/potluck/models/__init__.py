"""ORM models. Importing this package registers every table with Base.metadata."""

from potluck.models.media import Media, MediaType
from potluck.models.user import User
from potluck.models.recipe import Recipe, RecipeIngredient, RecipeStep
from potluck.models.post import Post
from potluck.models.meal_plan import MealPlan, MealType

__all__ = [
    "Media",
    "MediaType",
    "User",
    "Recipe",
    "RecipeIngredient",
    "RecipeStep",
    "Post",
    "MealPlan",
    "MealType",
]

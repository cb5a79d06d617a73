"""
domain.validation - Field invariants checked before any write.

Each check raises ValidationError naming the offending field. The store
validates strictly: a mismatched total time is rejected, never repaired.
"""

from __future__ import annotations

from domain.entities import Collection, Recipe
from domain.exceptions import ValidationError
from domain.models import DifficultyLevel, RecipeCategory

MIN_RATING = 0.0
MAX_RATING = 5.0


def validate_rating(rating: float) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            "rating", f"must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
        )


def _require_non_negative(field: str, value: float) -> None:
    if value < 0:
        raise ValidationError(field, f"must be >= 0, got {value}")


def _require_clean_lines(field: str, lines: tuple[str, ...]) -> None:
    for line in lines:
        if not line.strip():
            raise ValidationError(field, "entries must not be blank")
        if "\n" in line:
            raise ValidationError(field, "entries must be single lines")


def validate_recipe(recipe: Recipe) -> None:
    """Check every invariant of a recipe about to be written."""
    if not recipe.name or not recipe.name.strip():
        raise ValidationError("name", "must not be empty")
    if not isinstance(recipe.category, RecipeCategory):
        raise ValidationError("category", f"unknown category {recipe.category!r}")
    if recipe.difficulty is not None and not isinstance(
        recipe.difficulty, DifficultyLevel
    ):
        raise ValidationError("difficulty", f"unknown difficulty {recipe.difficulty!r}")

    _require_non_negative("prep_time_min", recipe.prep_time_min)
    _require_non_negative("cook_time_min", recipe.cook_time_min)
    if recipe.total_time_min != recipe.prep_time_min + recipe.cook_time_min:
        raise ValidationError(
            "total_time_min",
            f"must equal prep_time_min + cook_time_min "
            f"({recipe.prep_time_min} + {recipe.cook_time_min}), "
            f"got {recipe.total_time_min}",
        )
    if recipe.servings < 1:
        raise ValidationError("servings", f"must be >= 1, got {recipe.servings}")

    _require_clean_lines("ingredients", recipe.ingredients)
    _require_clean_lines("instructions", recipe.instructions)
    for tag in recipe.tags:
        if not tag.strip() or tag != tag.strip() or "," in tag:
            raise ValidationError("tags", f"invalid tag {tag!r}")

    validate_rating(recipe.rating)
    _require_non_negative("times_cooked", recipe.times_cooked)

    n = recipe.nutrition
    _require_non_negative("nutrition.calories", n.calories)
    _require_non_negative("nutrition.protein_g", n.protein_g)
    _require_non_negative("nutrition.carbs_g", n.carbs_g)
    _require_non_negative("nutrition.fat_g", n.fat_g)


def validate_collection(collection: Collection) -> None:
    if not collection.name or not collection.name.strip():
        raise ValidationError("name", "must not be empty")
    if len(set(collection.recipe_ids)) != len(collection.recipe_ids):
        raise ValidationError("recipe_ids", "must not contain duplicates")

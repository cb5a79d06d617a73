"""
domain.aggregates - Summary statistics recomputed from a snapshot.
"""

from __future__ import annotations

from typing import Iterable

from domain.entities import Recipe
from domain.models import RecipeCategory, RecipeStatistics


def average_rating(recipes: Iterable[Recipe]) -> float | None:
    """Mean rating over rated recipes only; zero ratings are left out entirely."""
    rated = [r.rating for r in recipes if r.rating > 0]
    if not rated:
        return None
    return sum(rated) / len(rated)


def average_cooking_time(recipes: Iterable[Recipe]) -> float | None:
    """Mean total time over recipes with a positive total time."""
    timed = [r.total_time_min for r in recipes if r.total_time_min > 0]
    if not timed:
        return None
    return sum(timed) / len(timed)


def category_counts(recipes: Iterable[Recipe]) -> dict[RecipeCategory, int]:
    """Count per category; every category is present, possibly with 0."""
    counts = {category: 0 for category in RecipeCategory}
    for recipe in recipes:
        counts[recipe.category] += 1
    return counts


def compute_statistics(recipes: Iterable[Recipe]) -> RecipeStatistics:
    items = list(recipes)
    return RecipeStatistics(
        count=len(items),
        favorite_count=sum(1 for r in items if r.is_favorite),
        average_rating=average_rating(items),
        average_cooking_time=average_cooking_time(items),
        total_times_cooked=sum(r.times_cooked for r in items),
        per_category_counts=category_counts(items),
    )

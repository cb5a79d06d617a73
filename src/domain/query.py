"""
domain.query - Pure query engine over a snapshot of recipes.

Every function here is deterministic and side-effect free: same snapshot
and same ViewSpec, same ordered output. Nothing is mutated; results are
new lists of the (frozen) input records.

Evaluation order for a ViewSpec:
    1. non-blank search text  -> substring search, filters ignored
       otherwise              -> category / difficulty / time filters
    2. sort by the requested order, ties broken by ascending id
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from domain.entities import Collection, Recipe
from domain.models import (
    DifficultyLevel,
    RecipeCategory,
    SortOption,
    TimeRange,
    ViewSpec,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def _searchable_fields(recipe: Recipe) -> tuple[str, ...]:
    return (
        recipe.name,
        "\n".join(recipe.ingredients),
        ",".join(recipe.tags),
        recipe.category.value,
    )


def matches_search(recipe: Recipe, text: Optional[str]) -> bool:
    """Case-insensitive substring match on name, ingredients, tags, category.

    Blank text matches everything.
    """
    if not text or not text.strip():
        return True
    needle = text.casefold()
    return any(needle in value.casefold() for value in _searchable_fields(recipe))


def search(recipes: Iterable[Recipe], text: Optional[str]) -> list[Recipe]:
    return [r for r in recipes if matches_search(r, text)]


# ---------------------------------------------------------------------------
# Structural filters
# ---------------------------------------------------------------------------

def matches_filters(
    recipe: Recipe,
    category: Optional[RecipeCategory] = None,
    difficulties: frozenset[DifficultyLevel] = frozenset(),
    time_range: Optional[TimeRange] = None,
) -> bool:
    if category is not None and recipe.category != category:
        return False
    if difficulties and recipe.difficulty not in difficulties:
        return False
    if time_range is not None and recipe.total_time_min not in time_range:
        return False
    return True


def filter_recipes(
    recipes: Iterable[Recipe],
    category: Optional[RecipeCategory] = None,
    difficulties: frozenset[DifficultyLevel] = frozenset(),
    time_range: Optional[TimeRange] = None,
) -> list[Recipe]:
    return [
        r for r in recipes
        if matches_filters(r, category, difficulties, time_range)
    ]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

# sort option -> (primary key, descending)
_SORT_KEYS: dict[SortOption, tuple[Callable[[Recipe], object], bool]] = {
    SortOption.NAME_ASC: (lambda r: r.name, False),
    SortOption.NAME_DESC: (lambda r: r.name, True),
    SortOption.TIME_ASC: (lambda r: r.total_time_min, False),
    SortOption.TIME_DESC: (lambda r: r.total_time_min, True),
    SortOption.RATING_ASC: (lambda r: r.rating, False),
    SortOption.RATING_DESC: (lambda r: r.rating, True),
    SortOption.RECENT: (lambda r: r.date_created or _EPOCH, True),
    SortOption.OLDEST: (lambda r: r.date_created or _EPOCH, False),
    SortOption.COOKED_MOST: (lambda r: r.times_cooked, True),
    SortOption.COOKED_LEAST: (lambda r: r.times_cooked, False),
}


def sort_recipes(recipes: Iterable[Recipe], sort: SortOption) -> list[Recipe]:
    """Sort into a total order: primary key, then ascending id.

    Python's sort is stable even with reverse=True, so pre-sorting by id
    keeps equal primary keys in ascending-id order for descending sorts too.
    """
    key, descending = _SORT_KEYS[sort]
    by_id = sorted(recipes, key=lambda r: r.id)
    return sorted(by_id, key=key, reverse=descending)


# ---------------------------------------------------------------------------
# ViewSpec evaluation
# ---------------------------------------------------------------------------

def evaluate(recipes: Iterable[Recipe], spec: ViewSpec) -> list[Recipe]:
    """Apply a ViewSpec: search OR filters, then sort."""
    if spec.has_search:
        narrowed = search(recipes, spec.search_text)
    else:
        narrowed = filter_recipes(
            recipes, spec.category, spec.difficulties, spec.time_range,
        )
    return sort_recipes(narrowed, spec.sort)


def favorites(
    recipes: Iterable[Recipe], sort: SortOption = SortOption.RECENT,
) -> list[Recipe]:
    return sort_recipes((r for r in recipes if r.is_favorite), sort)


def cooked(recipes: Iterable[Recipe]) -> list[Recipe]:
    """Recipes cooked at least once, most recently cooked first."""
    done = sorted((r for r in recipes if r.times_cooked > 0), key=lambda r: r.id)
    return sorted(done, key=lambda r: r.last_cooked or _EPOCH, reverse=True)


def collection_recipes(
    collection: Collection, recipes: Iterable[Recipe],
) -> list[Recipe]:
    """Members of a collection in membership order; orphaned ids are skipped."""
    by_id = {r.id: r for r in recipes}
    return [by_id[rid] for rid in collection.recipe_ids if rid in by_id]


def sort_collections(collections: Iterable[Collection]) -> list[Collection]:
    """Newest collection first, ties by ascending id."""
    by_id = sorted(collections, key=lambda c: c.id)
    return sorted(by_id, key=lambda c: c.created_at or _EPOCH, reverse=True)

"""
domain.models - Value objects for the recipe query layer.

These are immutable data containers with no dependencies on
infrastructure (no SQLite, no threads, no event loop).

Categories, difficulties and sort orders are proper enumerations. The
human-readable display names live on the enums only so the presentation
edge can round-trip them; nothing in the core compares display strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from domain.exceptions import ValidationError

if TYPE_CHECKING:
    from domain.entities import Collection, Recipe


ALL_CATEGORIES = "All"


class _DisplayEnum(str, Enum):
    """Enum whose members carry a display name for the presentation layer."""

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self, self.value)

    @classmethod
    def from_display_name(cls, display_name: str):
        """Convert a display name (or member value) back to the enum, or None."""
        wanted = display_name.strip().casefold()
        for member in cls:
            names = (member.display_name, member.value, member.name)
            if wanted in (name.casefold() for name in names):
                return member
        return None

    @classmethod
    def display_names(cls) -> list[str]:
        return [member.display_name for member in cls]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RecipeCategory(_DisplayEnum):
    """Fixed set of recipe categories."""
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    DESSERT = "Dessert"
    SNACK = "Snack"
    BEVERAGE = "Beverage"


class DifficultyLevel(_DisplayEnum):
    """How challenging a recipe is to prepare."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class SortOption(_DisplayEnum):
    """The ten sort orders a view can request.

    Every order breaks ties by ascending recipe id.
    """
    NAME_ASC = "NAME_ASC"
    NAME_DESC = "NAME_DESC"
    TIME_ASC = "TIME_ASC"
    TIME_DESC = "TIME_DESC"
    RATING_DESC = "RATING_DESC"
    RATING_ASC = "RATING_ASC"
    RECENT = "RECENT"
    OLDEST = "OLDEST"
    COOKED_MOST = "COOKED_MOST"
    COOKED_LEAST = "COOKED_LEAST"


_DISPLAY_NAMES: dict[Enum, str] = {
    SortOption.NAME_ASC: "Name (A-Z)",
    SortOption.NAME_DESC: "Name (Z-A)",
    SortOption.TIME_ASC: "Time (Low to High)",
    SortOption.TIME_DESC: "Time (High to Low)",
    SortOption.RATING_DESC: "Rating (High to Low)",
    SortOption.RATING_ASC: "Rating (Low to High)",
    SortOption.RECENT: "Recently Added",
    SortOption.OLDEST: "Oldest First",
    SortOption.COOKED_MOST: "Most Cooked",
    SortOption.COOKED_LEAST: "Least Cooked",
}


def parse_category(value: Optional[str]) -> Optional[RecipeCategory]:
    """Parse a category filter value. ``None``, blank and "All" mean no filter."""
    if value is None or not value.strip():
        return None
    if value.strip().casefold() == ALL_CATEGORIES.casefold():
        return None
    category = RecipeCategory.from_display_name(value)
    if category is None:
        raise ValidationError("category", f"unknown category '{value}'")
    return category


# ---------------------------------------------------------------------------
# View specification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeRange:
    """Inclusive bounds on a recipe's total time, in minutes."""
    minimum: int = 0
    maximum: int = 0

    def __post_init__(self) -> None:
        if self.minimum < 0:
            raise ValidationError("time_range", "minimum must be >= 0")
        if self.maximum < self.minimum:
            raise ValidationError("time_range", "maximum must be >= minimum")

    def __contains__(self, minutes: int) -> bool:
        return self.minimum <= minutes <= self.maximum


@dataclass(frozen=True)
class ViewSpec:
    """Which subset of recipes a consumer wants to see, and in what order.

    A non-blank ``search_text`` supersedes the category, difficulty and
    time filters entirely; the filters only apply when there is no search.
    ``category=None`` means "All"; an empty ``difficulties`` set means no
    difficulty filtering (not "match nothing").
    """
    search_text: Optional[str] = None
    category: Optional[RecipeCategory] = None
    difficulties: frozenset[DifficultyLevel] = field(default_factory=frozenset)
    time_range: Optional[TimeRange] = None
    sort: SortOption = SortOption.RECENT

    def __post_init__(self) -> None:
        # Accept any iterable for convenience; store a frozenset.
        if not isinstance(self.difficulties, frozenset):
            object.__setattr__(self, "difficulties", frozenset(self.difficulties or ()))

    @property
    def has_search(self) -> bool:
        return bool(self.search_text and self.search_text.strip())

    @property
    def has_filters(self) -> bool:
        return (
            self.category is not None
            or bool(self.difficulties)
            or self.time_range is not None
        )


# ---------------------------------------------------------------------------
# Snapshot & statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Snapshot:
    """A consistent, point-in-time view of every record in the store.

    ``version`` increases by one with every successful mutation.
    """
    version: int = 0
    recipes: tuple[Recipe, ...] = ()
    collections: tuple[Collection, ...] = ()

    def recipe(self, recipe_id: int) -> Optional[Recipe]:
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None

    def collection(self, collection_id: int) -> Optional[Collection]:
        for collection in self.collections:
            if collection.id == collection_id:
                return collection
        return None


@dataclass(frozen=True)
class RecipeStatistics:
    """Summary statistics over a snapshot.

    Averages are ``None`` when no record qualifies for the denominator.
    """
    count: int = 0
    favorite_count: int = 0
    average_rating: Optional[float] = None
    average_cooking_time: Optional[float] = None
    total_times_cooked: int = 0
    per_category_counts: dict[RecipeCategory, int] = field(default_factory=dict)

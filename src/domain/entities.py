"""
domain.entities - Persistence-aware types (have IDs, timestamps).

These dataclasses are decoupled from any persistence strategy: no SQL
concerns, no DB imports. They are frozen; every change produces a new
value, and only the entity store decides which value is canonical.

Timestamps are set by the entity store, not by the entities themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from domain.models import DifficultyLevel, RecipeCategory


@dataclass(frozen=True)
class Nutrition:
    """Per-serving nutrition block. Informational only."""
    calories: int = 0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0


@dataclass(frozen=True)
class Recipe:
    """A single recipe record.

    ``id == 0`` marks a record that has not been stored yet.
    ``total_time_min`` is stored, not derived; it must equal
    ``prep_time_min + cook_time_min`` whenever the record is written.
    """
    name: str
    category: RecipeCategory
    id: int = 0
    description: str = ""
    cuisine: str = ""
    difficulty: Optional[DifficultyLevel] = None

    prep_time_min: int = 0
    cook_time_min: int = 0
    total_time_min: int = 0
    servings: int = 1

    ingredients: tuple[str, ...] = ()
    instructions: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    image_url: Optional[str] = None
    rating: float = 0.0
    is_favorite: bool = False

    times_cooked: int = 0
    last_cooked: Optional[datetime] = None
    notes: str = ""

    date_created: Optional[datetime] = None
    date_modified: Optional[datetime] = None

    nutrition: Nutrition = field(default_factory=Nutrition)

    @classmethod
    def draft(
        cls,
        name: str,
        category: RecipeCategory,
        *,
        prep_time_min: int = 0,
        cook_time_min: int = 0,
        **fields,
    ) -> Recipe:
        """Build an unsaved recipe whose total time is consistent by construction."""
        return cls(
            name=name,
            category=category,
            prep_time_min=prep_time_min,
            cook_time_min=cook_time_min,
            total_time_min=prep_time_min + cook_time_min,
            **fields,
        )

    @property
    def is_new(self) -> bool:
        return not self.id

    def has_nutrition_info(self) -> bool:
        n = self.nutrition
        return n.calories > 0 or n.protein_g > 0 or n.carbs_g > 0 or n.fat_g > 0


@dataclass(frozen=True)
class Collection:
    """A named, ordered set of recipe ids.

    Membership may reference ids of recipes that no longer exist; deleting
    a recipe never touches collections.
    """
    name: str
    id: int = 0
    description: str = ""
    recipe_ids: tuple[int, ...] = ()
    created_at: Optional[datetime] = None

    def add_recipe_id(self, recipe_id: int) -> Collection:
        """Append ``recipe_id`` unless already a member. Idempotent."""
        if recipe_id in self.recipe_ids:
            return self
        return replace(self, recipe_ids=self.recipe_ids + (recipe_id,))

    def remove_recipe_id(self, recipe_id: int) -> Collection:
        """Drop ``recipe_id`` if present. Idempotent."""
        if recipe_id not in self.recipe_ids:
            return self
        return replace(
            self,
            recipe_ids=tuple(rid for rid in self.recipe_ids if rid != recipe_id),
        )

    def recipe_count(self) -> int:
        return len(self.recipe_ids)

    def __contains__(self, recipe_id: int) -> bool:
        return recipe_id in self.recipe_ids


def split_lines(text: str) -> tuple[str, ...]:
    """Split line-delimited text, dropping blank lines."""
    return tuple(line.strip() for line in text.splitlines() if line.strip())


def split_tags(text: str) -> tuple[str, ...]:
    """Split comma-delimited tags, trimming each and dropping blanks."""
    return tuple(tag.strip() for tag in text.split(",") if tag.strip())

"""
infrastructure.persistence.recipe_repo - SQLite recipe repository.

Implements RecipeRepository port. Ingredients and instructions are stored
newline-joined, tags comma-joined; blanks are dropped when reading back.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.entities import Nutrition, Recipe, split_lines, split_tags
from domain.exceptions import StorageError
from domain.models import DifficultyLevel, RecipeCategory
from infrastructure.persistence.codec import from_iso, to_iso
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_COLUMNS = (
    "name", "description", "category", "cuisine", "difficulty",
    "prep_time_min", "cook_time_min", "total_time_min", "servings",
    "ingredients", "instructions", "tags", "image_url",
    "rating", "is_favorite", "times_cooked", "last_cooked", "notes",
    "date_created", "date_modified",
    "calories_kcal", "protein_g", "carbs_g", "fat_g",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM recipes"


class SQLiteRecipeRepository:
    """Async SQLite implementation of RecipeRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get_all(self) -> list[Recipe]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(f"{_SELECT} ORDER BY id")
            return [self._row_to_recipe(r) for r in rows]

    async def get_by_id(self, recipe_id: int) -> Optional[Recipe]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(f"{_SELECT} WHERE id = ?", (recipe_id,))
            if not rows:
                return None
            return self._row_to_recipe(rows[0])

    async def save(self, recipe: Recipe) -> int:
        """Insert a recipe; an explicit id replaces any row with that id."""
        values = self._recipe_to_values(recipe)
        async with self._conn.acquire() as conn:
            if recipe.id:
                placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 1))
                await conn.execute(
                    f"INSERT OR REPLACE INTO recipes (id, {', '.join(_COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    (recipe.id, *values),
                )
                return recipe.id
            placeholders = ", ".join("?" for _ in _COLUMNS)
            cursor = await conn.execute(
                f"INSERT INTO recipes ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
            return cursor.lastrowid

    async def update(self, recipe: Recipe) -> bool:
        assignments = ", ".join(f"{col} = ?" for col in _COLUMNS)
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                f"UPDATE recipes SET {assignments} WHERE id = ?",
                (*self._recipe_to_values(recipe), recipe.id),
            )
            return cursor.rowcount > 0

    async def delete(self, recipe_ids: list[int]) -> int:
        if not recipe_ids:
            return 0
        placeholders = ", ".join("?" for _ in recipe_ids)
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                f"DELETE FROM recipes WHERE id IN ({placeholders})",
                tuple(recipe_ids),
            )
            return cursor.rowcount

    async def delete_all(self) -> int:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute("DELETE FROM recipes")
            return cursor.rowcount

    @staticmethod
    def _recipe_to_values(recipe: Recipe) -> tuple:
        return (
            recipe.name,
            recipe.description,
            recipe.category.value,
            recipe.cuisine,
            recipe.difficulty.value if recipe.difficulty else "",
            recipe.prep_time_min,
            recipe.cook_time_min,
            recipe.total_time_min,
            recipe.servings,
            "\n".join(recipe.ingredients),
            "\n".join(recipe.instructions),
            ",".join(recipe.tags),
            recipe.image_url,
            recipe.rating,
            int(recipe.is_favorite),
            recipe.times_cooked,
            to_iso(recipe.last_cooked),
            recipe.notes,
            to_iso(recipe.date_created),
            to_iso(recipe.date_modified),
            recipe.nutrition.calories,
            recipe.nutrition.protein_g,
            recipe.nutrition.carbs_g,
            recipe.nutrition.fat_g,
        )

    @staticmethod
    def _row_to_recipe(row) -> Recipe:
        try:
            category = RecipeCategory(row["category"])
            difficulty = DifficultyLevel(row["difficulty"]) if row["difficulty"] else None
        except ValueError as exc:
            raise StorageError(f"recipe {row['id']} has an unreadable enum: {exc}") from exc
        return Recipe(
            id=row["id"],
            name=row["name"] or "",
            description=row["description"] or "",
            category=category,
            cuisine=row["cuisine"] or "",
            difficulty=difficulty,
            prep_time_min=row["prep_time_min"] or 0,
            cook_time_min=row["cook_time_min"] or 0,
            total_time_min=row["total_time_min"] or 0,
            servings=row["servings"] or 1,
            ingredients=split_lines(row["ingredients"] or ""),
            instructions=split_lines(row["instructions"] or ""),
            tags=split_tags(row["tags"] or ""),
            image_url=row["image_url"],
            rating=float(row["rating"] or 0.0),
            is_favorite=bool(row["is_favorite"]),
            times_cooked=row["times_cooked"] or 0,
            last_cooked=from_iso(row["last_cooked"]),
            notes=row["notes"] or "",
            date_created=from_iso(row["date_created"]),
            date_modified=from_iso(row["date_modified"]),
            nutrition=Nutrition(
                calories=row["calories_kcal"] or 0,
                protein_g=float(row["protein_g"] or 0.0),
                carbs_g=float(row["carbs_g"] or 0.0),
                fat_g=float(row["fat_g"] or 0.0),
            ),
        )

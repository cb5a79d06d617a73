"""
Shared fixtures: a throwaway SQLite file per test and a controllable clock.
"""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from application.services.entity_store import EntityStore
from domain.entities import Recipe
from domain.models import DifficultyLevel, RecipeCategory
from factory import ServiceFactory
from infrastructure.config import Settings
from infrastructure.persistence.collection_repo import SQLiteCollectionRepository
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.recipe_repo import SQLiteRecipeRepository


class FrozenClock:
    """Returns the same instant until advanced."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_recipe(name: str, category=RecipeCategory.DINNER, *, prep=10, cook=20, **fields) -> Recipe:
    return Recipe.draft(name, category, prep_time_min=prep, cook_time_min=cook, **fields)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "recipes.db")


async def open_store(db_path: str, clock=None) -> EntityStore:
    connection = AsyncSQLiteConnection(db_path)
    await run_migrations(connection)
    store = EntityStore(
        SQLiteRecipeRepository(connection),
        SQLiteCollectionRepository(connection),
        clock=clock,
    )
    await store.load()
    return store


@pytest_asyncio.fixture
async def store(db_path, clock) -> EntityStore:
    return await open_store(db_path, clock)


@pytest_asyncio.fixture
async def factory(tmp_path, db_path) -> ServiceFactory:
    factory = ServiceFactory(Settings(project_root=tmp_path, db_path=db_path))
    await factory.initialize()
    return factory


@pytest.fixture
def sample_recipes() -> list[Recipe]:
    """Five stored-looking recipes with distinct ids and creation dates."""
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    return [
        Recipe(id=1, name="Pasta Carbonara", category=RecipeCategory.DINNER,
               difficulty=DifficultyLevel.MEDIUM, prep_time_min=10, cook_time_min=15,
               total_time_min=25, ingredients=("200g spaghetti", "2 eggs", "pancetta"),
               tags=("italian", "quick"), rating=4.5, times_cooked=3,
               date_created=base),
        Recipe(id=2, name="Chocolate Mousse", category=RecipeCategory.DESSERT,
               difficulty=DifficultyLevel.EASY, prep_time_min=20, cook_time_min=0,
               total_time_min=20, ingredients=("dark chocolate", "cream"),
               tags=("sweet",), rating=5.0, is_favorite=True, times_cooked=1,
               date_created=base + timedelta(days=1)),
        Recipe(id=3, name="Tomato Soup", category=RecipeCategory.LUNCH,
               difficulty=DifficultyLevel.EASY, prep_time_min=10, cook_time_min=30,
               total_time_min=40, ingredients=("tomatoes", "basil", "pasta stars"),
               tags=("vegetarian",), rating=0.0,
               date_created=base + timedelta(days=2)),
        Recipe(id=4, name="Apple Crumble", category=RecipeCategory.DESSERT,
               difficulty=DifficultyLevel.MEDIUM, prep_time_min=15, cook_time_min=40,
               total_time_min=55, ingredients=("apples", "flour", "butter"),
               tags=("baking", "autumn"), rating=4.0, is_favorite=True, times_cooked=3,
               date_created=base + timedelta(days=3)),
        Recipe(id=5, name="Lemon Sorbet", category=RecipeCategory.DESSERT,
               difficulty=DifficultyLevel.EASY, prep_time_min=15, cook_time_min=0,
               total_time_min=15, ingredients=("lemons", "sugar"),
               tags=("sweet", "summer"), rating=4.0,
               date_created=base + timedelta(days=4)),
    ]

"""
infrastructure.persistence.migrations - Database schema creation.

Called once at startup by the factory. Collection membership is stored as
comma-joined ids with no foreign key to recipes: orphaned ids are allowed.
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_TABLES = [
    """CREATE TABLE IF NOT EXISTS recipes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        category TEXT NOT NULL,
        cuisine TEXT,
        difficulty TEXT,
        prep_time_min INTEGER,
        cook_time_min INTEGER,
        total_time_min INTEGER,
        servings INTEGER,
        ingredients TEXT,
        instructions TEXT,
        tags TEXT,
        image_url TEXT,
        rating REAL,
        is_favorite INTEGER,
        times_cooked INTEGER,
        last_cooked TEXT,
        notes TEXT,
        date_created TEXT,
        date_modified TEXT,
        calories_kcal INTEGER,
        protein_g REAL,
        carbs_g REAL,
        fat_g REAL
    )""",
    """CREATE TABLE IF NOT EXISTS collections (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        recipe_ids TEXT,
        created_at TEXT
    )""",
]


async def run_migrations(connection: AsyncSQLiteConnection) -> None:
    """Create all tables if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    async with connection.acquire() as conn:
        for ddl in _TABLES:
            await conn.execute(ddl)
    logger.info("All tables created (or already exist) in %s.", connection.db_path)

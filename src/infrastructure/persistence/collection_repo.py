"""
infrastructure.persistence.collection_repo - SQLite collection repository.

Implements CollectionRepository port. Membership is a comma-joined id list
whose order is the display order.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.entities import Collection
from infrastructure.persistence.codec import from_iso, join_ids, split_ids, to_iso
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteCollectionRepository:
    """Async SQLite implementation of CollectionRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get_all(self) -> list[Collection]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT id, name, description, recipe_ids, created_at "
                "FROM collections ORDER BY id",
            )
            return [self._row_to_collection(r) for r in rows]

    async def get_by_id(self, collection_id: int) -> Optional[Collection]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT id, name, description, recipe_ids, created_at "
                "FROM collections WHERE id = ?",
                (collection_id,),
            )
            if not rows:
                return None
            return self._row_to_collection(rows[0])

    async def save(self, collection: Collection) -> int:
        values = (
            collection.name,
            collection.description,
            join_ids(collection.recipe_ids),
            to_iso(collection.created_at),
        )
        async with self._conn.acquire() as conn:
            if collection.id:
                await conn.execute(
                    """INSERT OR REPLACE INTO collections
                       (id, name, description, recipe_ids, created_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (collection.id, *values),
                )
                return collection.id
            cursor = await conn.execute(
                """INSERT INTO collections (name, description, recipe_ids, created_at)
                   VALUES (?, ?, ?, ?)""",
                values,
            )
            return cursor.lastrowid

    async def update(self, collection: Collection) -> bool:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """UPDATE collections
                   SET name = ?, description = ?, recipe_ids = ?, created_at = ?
                   WHERE id = ?""",
                (
                    collection.name,
                    collection.description,
                    join_ids(collection.recipe_ids),
                    to_iso(collection.created_at),
                    collection.id,
                ),
            )
            return cursor.rowcount > 0

    async def delete(self, collection_id: int) -> bool:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "DELETE FROM collections WHERE id = ?", (collection_id,),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_collection(row) -> Collection:
        return Collection(
            id=row["id"],
            name=row["name"] or "",
            description=row["description"] or "",
            recipe_ids=split_ids(row["recipe_ids"]),
            created_at=from_iso(row["created_at"]),
        )

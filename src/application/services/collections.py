"""
application.services.collections - Collection membership management.

The membership transforms themselves are pure (Collection.add_recipe_id /
remove_recipe_id); this service pairs each transform with the store write
that persists it. Recipe existence is not checked: membership is a set of
ids with no foreign key to recipes.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from application.services.entity_store import EntityStore
from domain import query
from domain.entities import Collection, Recipe
from domain.exceptions import NotFound

logger = logging.getLogger(__name__)


class CollectionService:
    """Creates collections and edits their membership."""

    def __init__(self, store: EntityStore):
        self._store = store

    async def create(self, name: str, description: str = "") -> Collection:
        collection_id = await self._store.insert_collection(
            Collection(name=name.strip(), description=description.strip()),
        )
        return self._store.get_collection(collection_id)

    async def update_details(
        self, collection_id: int, name: str, description: str,
    ) -> Collection:
        return await self._store.apply_to_collection(
            collection_id,
            lambda c: replace(c, name=name.strip(), description=description.strip()),
        )

    async def add_recipe(self, collection_id: int, recipe_id: int) -> Collection:
        collection = await self._store.apply_to_collection(
            collection_id, lambda c: c.add_recipe_id(recipe_id),
        )
        logger.info("Collection %d now holds %d recipe(s)",
                    collection_id, collection.recipe_count())
        return collection

    async def remove_recipe(self, collection_id: int, recipe_id: int) -> Collection:
        return await self._store.apply_to_collection(
            collection_id, lambda c: c.remove_recipe_id(recipe_id),
        )

    async def delete(self, collection_id: int) -> None:
        await self._store.delete_collection(collection_id)

    def list_all(self) -> list[Collection]:
        """All collections, newest first."""
        return query.sort_collections(self._store.get_all_collections())

    def recipes(self, collection_id: int) -> list[Recipe]:
        """Member recipes in membership order, skipping deleted ones."""
        snapshot = self._store.snapshot()
        collection = snapshot.collection(collection_id)
        if collection is None:
            raise NotFound("Collection", collection_id)
        return query.collection_recipes(collection, snapshot.recipes)

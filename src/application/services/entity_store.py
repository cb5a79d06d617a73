"""
application.services.entity_store - The single point of truth for records.

Owns identity assignment, timestamps and raw CRUD for recipes and
collections. Writes go through to SQLite (via the repository ports) under
one asyncio.Lock, so no two mutations interleave. After each write has
committed, a new immutable Snapshot is swapped in and every listener is
told about it. Readers only ever see a whole snapshot, never a partially
applied mutation.

Key points:
    - Explicit handle constructed once by the factory (no global instance)
    - Strict validation: a mismatched total time is rejected, not repaired
    - date_modified strictly increases per record, even within one clock tick
    - times_cooked / last_cooked change only through mark_as_cooked and
      reset_times_cooked; insert and update carry the stored values over
    - Deleting a recipe never touches collection membership
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from domain.entities import Collection, Recipe
from domain.exceptions import NotFound, ValidationError
from domain.models import Snapshot
from domain.ports import CollectionRepository, RecipeRepository
from domain.validation import validate_collection, validate_rating, validate_recipe

logger = logging.getLogger(__name__)

StoreListener = Callable[[Snapshot], None]

_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _with_record(records: tuple, record) -> tuple:
    """Replace-or-append ``record`` by id, keeping ascending id order."""
    kept = [r for r in records if r.id != record.id]
    kept.append(record)
    return tuple(sorted(kept, key=lambda r: r.id))


def _with_cooking_history(recipe: Recipe, stored: Recipe) -> Recipe:
    """Carry the stored cooking counters over a caller-supplied record."""
    return replace(
        recipe, times_cooked=stored.times_cooked, last_cooked=stored.last_cooked,
    )


class EntityStore:
    """Durable keyed storage for recipes and collections."""

    def __init__(
        self,
        recipe_repo: RecipeRepository,
        collection_repo: CollectionRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._recipe_repo = recipe_repo
        self._collection_repo = collection_repo
        self._clock = clock or _utcnow
        self._lock = asyncio.Lock()
        self._snapshot = Snapshot()
        self._listeners: list[StoreListener] = []

    async def load(self) -> None:
        """Read both tables into the initial snapshot."""
        async with self._lock:
            recipes = await self._recipe_repo.get_all()
            collections = await self._collection_repo.get_all()
            self._snapshot = Snapshot(
                version=self._snapshot.version,
                recipes=tuple(sorted(recipes, key=lambda r: r.id)),
                collections=tuple(sorted(collections, key=lambda c: c.id)),
            )
        logger.info(
            "Entity store loaded: %d recipe(s), %d collection(s)",
            len(recipes), len(collections),
        )

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(
        self,
        recipes: Optional[tuple[Recipe, ...]] = None,
        collections: Optional[tuple[Collection, ...]] = None,
    ) -> None:
        current = self._snapshot
        self._snapshot = Snapshot(
            version=current.version + 1,
            recipes=current.recipes if recipes is None else recipes,
            collections=current.collections if collections is None else collections,
        )
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("Store listener %r failed", listener)

    # ------------------------------------------------------------------
    # Reads (never block on the write lock)
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def get(self, recipe_id: int) -> Optional[Recipe]:
        return self._snapshot.recipe(recipe_id)

    def get_all(self) -> tuple[Recipe, ...]:
        return self._snapshot.recipes

    def count(self) -> int:
        return len(self._snapshot.recipes)

    def get_collection(self, collection_id: int) -> Optional[Collection]:
        return self._snapshot.collection(collection_id)

    def get_all_collections(self) -> tuple[Collection, ...]:
        return self._snapshot.collections

    def count_collections(self) -> int:
        return len(self._snapshot.collections)

    # ------------------------------------------------------------------
    # Recipe writes
    # ------------------------------------------------------------------

    def _stamp(self, previous: Optional[datetime]) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            now = previous + _TICK
        return now

    def _require_recipe(self, recipe_id: int) -> Recipe:
        recipe = self._snapshot.recipe(recipe_id)
        if recipe is None:
            raise NotFound("Recipe", recipe_id)
        return recipe

    async def _insert_locked(self, recipe: Recipe) -> int:
        if recipe.id < 0:
            raise ValidationError("id", f"must be >= 0, got {recipe.id}")
        existing = self._snapshot.recipe(recipe.id) if recipe.id else None
        if existing is not None:
            # Upsert over an existing id: the creation stamp is immutable.
            stored = replace(
                _with_cooking_history(recipe, existing),
                date_created=existing.date_created,
                date_modified=self._stamp(existing.date_modified),
            )
        else:
            now = self._clock()
            stored = replace(
                recipe, times_cooked=0, last_cooked=None,
                date_created=now, date_modified=now,
            )
        validate_recipe(stored)

        recipe_id = await self._recipe_repo.save(stored)
        stored = replace(stored, id=recipe_id)
        self._publish(recipes=_with_record(self._snapshot.recipes, stored))
        logger.info("Stored recipe %d ('%s')", recipe_id, stored.name)
        return recipe_id

    async def insert(self, recipe: Recipe) -> int:
        """Insert a recipe and return its id.

        ``id == 0`` assigns a new id; a non-zero id overwrites that record.
        """
        async with self._lock:
            return await self._insert_locked(recipe)

    async def insert_all(self, recipes: Iterable[Recipe]) -> list[int]:
        async with self._lock:
            return [await self._insert_locked(recipe) for recipe in recipes]

    async def update(self, recipe: Recipe) -> Recipe:
        """Overwrite an existing recipe. Raises NotFound for unknown ids."""
        async with self._lock:
            current = self._require_recipe(recipe.id)
            updated = replace(
                _with_cooking_history(recipe, current),
                date_created=current.date_created,
                date_modified=self._stamp(current.date_modified),
            )
            validate_recipe(updated)
            if not await self._recipe_repo.update(updated):
                self._forget_recipe(recipe.id)
                raise NotFound("Recipe", recipe.id)
            self._publish(recipes=_with_record(self._snapshot.recipes, updated))
            logger.info("Updated recipe %d", updated.id)
            return updated

    async def _modify(
        self, recipe_id: int, change: Callable[[Recipe], Recipe],
    ) -> Recipe:
        async with self._lock:
            current = self._require_recipe(recipe_id)
            updated = replace(
                change(current), date_modified=self._stamp(current.date_modified),
            )
            validate_recipe(updated)
            if not await self._recipe_repo.update(updated):
                self._forget_recipe(recipe_id)
                raise NotFound("Recipe", recipe_id)
            self._publish(recipes=_with_record(self._snapshot.recipes, updated))
            return updated

    def _forget_recipe(self, recipe_id: int) -> None:
        """Drop a record the database no longer holds from the snapshot."""
        logger.warning("Recipe %d vanished from the database; dropping it", recipe_id)
        self._publish(recipes=tuple(
            r for r in self._snapshot.recipes if r.id != recipe_id
        ))

    async def delete(self, recipe_id: int) -> None:
        """Delete one recipe. Raises NotFound for unknown ids."""
        async with self._lock:
            self._require_recipe(recipe_id)
            await self._recipe_repo.delete([recipe_id])
            self._publish(recipes=tuple(
                r for r in self._snapshot.recipes if r.id != recipe_id
            ))
            logger.info("Deleted recipe %d", recipe_id)

    async def delete_by_ids(self, recipe_ids: Iterable[int]) -> int:
        """Delete every listed recipe that exists; unknown ids are ignored."""
        async with self._lock:
            doomed = {rid for rid in recipe_ids if self._snapshot.recipe(rid)}
            if not doomed:
                return 0
            deleted = await self._recipe_repo.delete(sorted(doomed))
            self._publish(recipes=tuple(
                r for r in self._snapshot.recipes if r.id not in doomed
            ))
            logger.info("Deleted %d recipe(s)", deleted)
            return deleted

    async def delete_all(self) -> int:
        async with self._lock:
            deleted = await self._recipe_repo.delete_all()
            self._publish(recipes=())
            logger.info("Deleted all %d recipe(s)", deleted)
            return deleted

    async def toggle_favorite(
        self, recipe_id: int, is_favorite: Optional[bool] = None,
    ) -> Recipe:
        """Set the favorite flag, or flip it when no value is given."""
        return await self._modify(
            recipe_id,
            lambda r: replace(
                r, is_favorite=(not r.is_favorite) if is_favorite is None else is_favorite,
            ),
        )

    async def update_rating(self, recipe_id: int, rating: float) -> Recipe:
        validate_rating(rating)
        return await self._modify(recipe_id, lambda r: replace(r, rating=float(rating)))

    async def mark_as_cooked(self, recipe_id: int) -> Recipe:
        """Increment times_cooked and stamp last_cooked."""
        cooked_at = self._clock()
        return await self._modify(
            recipe_id,
            lambda r: replace(r, times_cooked=r.times_cooked + 1, last_cooked=cooked_at),
        )

    async def reset_times_cooked(self, recipe_id: int) -> Recipe:
        return await self._modify(
            recipe_id, lambda r: replace(r, times_cooked=0, last_cooked=None),
        )

    async def update_notes(self, recipe_id: int, notes: str) -> Recipe:
        return await self._modify(recipe_id, lambda r: replace(r, notes=notes))

    # ------------------------------------------------------------------
    # Collection writes
    # ------------------------------------------------------------------

    def _require_collection(self, collection_id: int) -> Collection:
        collection = self._snapshot.collection(collection_id)
        if collection is None:
            raise NotFound("Collection", collection_id)
        return collection

    async def insert_collection(self, collection: Collection) -> int:
        async with self._lock:
            existing = (
                self._snapshot.collection(collection.id) if collection.id else None
            )
            created_at = existing.created_at if existing else self._clock()
            stored = replace(collection, created_at=created_at)
            validate_collection(stored)

            collection_id = await self._collection_repo.save(stored)
            stored = replace(stored, id=collection_id)
            self._publish(collections=_with_record(self._snapshot.collections, stored))
            logger.info("Stored collection %d ('%s')", collection_id, stored.name)
            return collection_id

    async def update_collection(self, collection: Collection) -> Collection:
        return await self.apply_to_collection(collection.id, lambda _: collection)

    async def apply_to_collection(
        self, collection_id: int, transform: Callable[[Collection], Collection],
    ) -> Collection:
        """Persist ``transform(current)`` atomically. No-op transforms write nothing."""
        async with self._lock:
            current = self._require_collection(collection_id)
            updated = replace(
                transform(current), id=collection_id, created_at=current.created_at,
            )
            if updated == current:
                return current
            validate_collection(updated)
            if not await self._collection_repo.update(updated):
                logger.warning(
                    "Collection %d vanished from the database; dropping it", collection_id,
                )
                self._publish(collections=tuple(
                    c for c in self._snapshot.collections if c.id != collection_id
                ))
                raise NotFound("Collection", collection_id)
            self._publish(collections=_with_record(self._snapshot.collections, updated))
            return updated

    async def delete_collection(self, collection_id: int) -> None:
        async with self._lock:
            self._require_collection(collection_id)
            await self._collection_repo.delete(collection_id)
            self._publish(collections=tuple(
                c for c in self._snapshot.collections if c.id != collection_id
            ))
            logger.info("Deleted collection %d", collection_id)

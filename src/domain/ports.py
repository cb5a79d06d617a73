"""
domain.ports - Abstract interfaces (Protocols) for the persistence boundary.

These define WHAT the store needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.entities import Collection, Recipe


@runtime_checkable
class RecipeRepository(Protocol):
    """Raw keyed storage for Recipe records."""

    async def get_all(self) -> list[Recipe]: ...
    async def get_by_id(self, recipe_id: int) -> Recipe | None: ...
    async def save(self, recipe: Recipe) -> int: ...
    async def update(self, recipe: Recipe) -> bool: ...
    async def delete(self, recipe_ids: list[int]) -> int: ...
    async def delete_all(self) -> int: ...


@runtime_checkable
class CollectionRepository(Protocol):
    """Raw keyed storage for Collection records."""

    async def get_all(self) -> list[Collection]: ...
    async def get_by_id(self, collection_id: int) -> Collection | None: ...
    async def save(self, collection: Collection) -> int: ...
    async def update(self, collection: Collection) -> bool: ...
    async def delete(self, collection_id: int) -> bool: ...

"""
factory - Composition root for the recipe book.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, UI) call this factory to get fully configured
services, and every service receives the one EntityStore handle built here.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    store = factory.store
    views = factory.create_live_view_manager()
    views.bind("browse", ViewSpec(sort=SortOption.NAME_ASC), on_update)
"""

from __future__ import annotations

import logging
from typing import Optional

from application.services.collections import CollectionService
from application.services.entity_store import EntityStore
from application.services.live_view import LiveViewManager
from infrastructure.config import Settings
from infrastructure.persistence.collection_repo import SQLiteCollectionRepository
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.recipe_repo import SQLiteRecipeRepository

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create services as needed.
    """

    def __init__(self, config: Settings):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._store: Optional[EntityStore] = None
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    async def initialize(self) -> None:
        """One-time startup: run migrations, load the store snapshot.

        Must be called before creating services.
        """
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)
        await run_migrations(self._connection)

        self._store = EntityStore(
            recipe_repo=SQLiteRecipeRepository(self._connection),
            collection_repo=SQLiteCollectionRepository(self._connection),
        )
        await self._store.load()
        self._initialized = True
        logger.info("ServiceFactory ready")

    @property
    def store(self) -> EntityStore:
        self._ensure_initialized()
        return self._store

    def create_live_view_manager(self) -> LiveViewManager:
        self._ensure_initialized()
        return LiveViewManager(self._store, offload=self._config.live_view_offload)

    def create_collection_service(self) -> CollectionService:
        self._ensure_initialized()
        return CollectionService(self._store)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )

"""
application.services.live_view - Continuously updated query results.

Each consumer owns one or more named slots. A slot binds a query (usually a
ViewSpec evaluation) to a listener. Whenever the store publishes a new
snapshot, every bound slot is recomputed asynchronously and the listener is
called with the result.

Cancel-before-replace: rebinding a slot, or a newer snapshot arriving,
cancels the slot's in-flight recomputation and bumps its generation before
the replacement is scheduled. A recomputation only delivers if its
generation is still the slot's current one, so an older, slower result can
never overwrite a newer one.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from application.dto import ViewState, ViewStatus
from application.services.entity_store import EntityStore
from domain import aggregates, query
from domain.exceptions import Cancelled, DomainError, NotFound
from domain.models import Snapshot, SortOption, ViewSpec

logger = logging.getLogger(__name__)

Listener = Callable[[ViewState], None]
Query = Callable[[Snapshot], Any]


@dataclass
class _Subscription:
    slot: str
    query: Query
    listener: Listener
    generation: int = 0
    task: Optional[asyncio.Task] = None
    state: ViewState = field(default_factory=ViewState)


def _evaluate_spec(spec: ViewSpec, snapshot: Snapshot) -> list:
    return query.evaluate(snapshot.recipes, spec)


def _statistics(snapshot: Snapshot):
    return aggregates.compute_statistics(snapshot.recipes)


def _favorites(sort: SortOption, snapshot: Snapshot) -> list:
    return query.favorites(snapshot.recipes, sort)


def _collection_members(collection_id: int, snapshot: Snapshot) -> list:
    collection = snapshot.collection(collection_id)
    if collection is None:
        raise NotFound("Collection", collection_id)
    return query.collection_recipes(collection, snapshot.recipes)


class LiveViewManager:
    """Keeps every bound slot's result in step with the entity store."""

    def __init__(self, store: EntityStore, *, offload: bool = True):
        self._store = store
        self._offload = offload
        self._subscriptions: dict[str, _Subscription] = {}
        self._unsubscribe = store.subscribe(self._on_store_changed)

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind_query(self, slot: str, query_fn: Query, listener: Listener) -> None:
        """Bind (or rebind) ``slot`` to an arbitrary snapshot query.

        Must be called from inside the running event loop.
        """
        sub = self._subscriptions.get(slot)
        if sub is None:
            sub = _Subscription(slot=slot, query=query_fn, listener=listener)
            self._subscriptions[slot] = sub
            logger.info("Bound live view '%s'", slot)
        else:
            sub.query = query_fn
            sub.listener = listener
            logger.info("Replaced query of live view '%s'", slot)
        self._schedule(sub, self._store.snapshot())

    def bind(self, slot: str, spec: ViewSpec, listener: Listener) -> None:
        """Bind ``slot`` to the recipe list described by ``spec``."""
        self.bind_query(slot, functools.partial(_evaluate_spec, spec), listener)

    def bind_statistics(self, slot: str, listener: Listener) -> None:
        self.bind_query(slot, _statistics, listener)

    def bind_favorites(
        self, slot: str, listener: Listener, sort: SortOption = SortOption.RECENT,
    ) -> None:
        self.bind_query(slot, functools.partial(_favorites, sort), listener)

    def bind_collection(self, slot: str, collection_id: int, listener: Listener) -> None:
        self.bind_query(
            slot, functools.partial(_collection_members, collection_id), listener,
        )

    def unbind(self, slot: str) -> None:
        sub = self._subscriptions.pop(slot, None)
        if sub is None:
            return
        self._cancel(sub)
        sub.generation += 1
        logger.info("Unbound live view '%s'", slot)

    def state(self, slot: str) -> Optional[ViewState]:
        sub = self._subscriptions.get(slot)
        return sub.state if sub else None

    @property
    def slots(self) -> list[str]:
        return list(self._subscriptions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait until no slot has a recomputation in flight."""
        while True:
            pending = [
                sub.task for sub in self._subscriptions.values()
                if sub.task is not None and not sub.task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        self._unsubscribe()
        tasks = []
        for slot in list(self._subscriptions):
            sub = self._subscriptions[slot]
            if sub.task is not None:
                tasks.append(sub.task)
            self.unbind(slot)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _on_store_changed(self, snapshot: Snapshot) -> None:
        for sub in list(self._subscriptions.values()):
            self._schedule(sub, snapshot)

    @staticmethod
    def _cancel(sub: _Subscription) -> None:
        if sub.task is not None and not sub.task.done():
            sub.task.cancel()

    def _schedule(self, sub: _Subscription, snapshot: Snapshot) -> None:
        # Runs inside the store's write path: cancel, record and schedule
        # only. Listeners are called from the task, never from here.
        self._cancel(sub)
        sub.generation += 1
        generation = sub.generation
        sub.state = ViewState(
            status=ViewStatus.LOADING,
            value=sub.state.value,
            version=snapshot.version,
            generation=generation,
        )
        sub.task = asyncio.get_running_loop().create_task(
            self._recompute(sub, generation, snapshot),
            name=f"live-view:{sub.slot}:{generation}",
        )

    def _ensure_current(self, sub: _Subscription, generation: int) -> None:
        if sub.generation != generation or self._subscriptions.get(sub.slot) is not sub:
            raise Cancelled(f"live view '{sub.slot}' generation {generation} superseded")

    async def _recompute(
        self, sub: _Subscription, generation: int, snapshot: Snapshot,
    ) -> None:
        query_fn = sub.query
        # Listeners are only called from the task, off the store write path.
        self._notify(sub, sub.state)
        try:
            if self._offload:
                value = await asyncio.to_thread(query_fn, snapshot)
            else:
                value = query_fn(snapshot)
            self._ensure_current(sub, generation)
        except Cancelled as exc:
            logger.debug("Discarding stale result: %s", exc)
            return
        except asyncio.CancelledError:
            logger.debug(
                "Recomputation of live view '%s' (generation %d) cancelled",
                sub.slot, generation,
            )
            raise
        except DomainError as exc:
            logger.warning("Live view '%s' failed: %s", sub.slot, exc)
            self._deliver_if_current(sub, generation, ViewState(
                status=ViewStatus.ERROR, value=sub.state.value, error=str(exc),
                version=snapshot.version, generation=generation,
            ))
            return
        except Exception as exc:
            logger.exception("Live view '%s' recomputation crashed", sub.slot)
            self._deliver_if_current(sub, generation, ViewState(
                status=ViewStatus.ERROR, value=sub.state.value, error=str(exc),
                version=snapshot.version, generation=generation,
            ))
            return

        self._deliver(sub, ViewState(
            status=ViewStatus.READY, value=value,
            version=snapshot.version, generation=generation,
        ))

    def _deliver_if_current(
        self, sub: _Subscription, generation: int, state: ViewState,
    ) -> None:
        try:
            self._ensure_current(sub, generation)
        except Cancelled as exc:
            logger.debug("Discarding stale error: %s", exc)
            return
        self._deliver(sub, state)

    @staticmethod
    def _deliver(sub: _Subscription, state: ViewState) -> None:
        sub.state = state
        LiveViewManager._notify(sub, state)

    @staticmethod
    def _notify(sub: _Subscription, state: ViewState) -> None:
        try:
            sub.listener(state)
        except Exception:
            logger.exception("Listener of live view '%s' failed", sub.slot)

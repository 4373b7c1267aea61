"""
Live reconciliation of file screens.

Each reconciler keeps listeners on the base collections a screen depends
on (projects, customers, and its status collection, if any). Every
snapshot replaces the cached copy of that collection and starts a fresh
aggregation pass over the cached data.

RACE RULE:
  Passes are numbered. A pass commits its rows only if no newer pass has
  started since it began. A slow, stale pass never overwrites the
  result of a newer one. Stale passes are dropped silently (DEBUG log).

Snapshot callbacks arrive on SDK threads; they only hand data over to the
event loop with call_soon_threadsafe. All state is mutated on the loop.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request

from portal_admin.core.config import settings
from portal_admin.core.firebase import (
    Document,
    DocumentStore,
    Unsubscribe,
    decode_documents,
    get_store,
)
from portal_admin.models.customer import Customer
from portal_admin.models.project import Project
from portal_admin.models.status import StatusRecord
from portal_admin.schemas.rows import FileRow
from portal_admin.services.screens import (
    CUSTOMERS_COLLECTION,
    FILE_SCREENS,
    PROJECTS_COLLECTION,
    FileScreen,
    load_file_rows,
    run_file_screen,
)
from portal_admin.services.status_tracking import build_status_map

logger = logging.getLogger(__name__)


class LiveReconciler:
    """Keeps one screen's rows in step with its base collections."""

    def __init__(self, store: DocumentStore, screen: FileScreen) -> None:
        self.screen = screen
        self._store = store
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribes: list[Unsubscribe] = []
        self._tasks: set[asyncio.Task] = set()

        self._projects: list[Project] | None = None
        self._customers: list[Customer] | None = None
        self._statuses: dict[str, StatusRecord] | None = None if screen.status_kind else {}

        self._generation = 0
        self._rows: list[FileRow] = []
        self.synced_at: datetime.datetime | None = None

    # ── Lifecycle ───────────────────────────────────────────
    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        listeners: list[tuple[str, Callable[[list[Document]], None]]] = [
            (PROJECTS_COLLECTION, self._on_projects),
            (CUSTOMERS_COLLECTION, self._on_customers),
        ]
        if self.screen.status_kind is not None:
            listeners.append((self.screen.status_kind.collection, self._on_statuses))

        for path, handler in listeners:
            unsubscribe = await asyncio.to_thread(self._store.watch, path, handler)
            self._unsubscribes.append(unsubscribe)
        logger.info("Live sync started for %s (%d listeners)", self.screen.name, len(listeners))

    async def stop(self) -> None:
        # Snapshots already queued on the loop are dropped from here on
        self._loop = None
        for unsubscribe in self._unsubscribes:
            try:
                unsubscribe()
            except Exception:
                logger.warning("Unsubscribe failed for %s", self.screen.name, exc_info=True)
        self._unsubscribes.clear()

        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Live sync stopped for %s", self.screen.name)

    # ── State ───────────────────────────────────────────────
    @property
    def ready(self) -> bool:
        """True once at least one pass has committed."""
        return self.synced_at is not None

    @property
    def generation(self) -> int:
        return self._generation

    def rows(self) -> list[FileRow]:
        return list(self._rows)

    # ── Snapshot handlers (SDK threads) ─────────────────────
    def _on_projects(self, docs: list[Document]) -> None:
        projects = sorted(
            decode_documents(docs, Project.from_document, PROJECTS_COLLECTION),
            key=lambda p: p.name,
        )
        self._hand_over("_projects", projects)

    def _on_customers(self, docs: list[Document]) -> None:
        customers = sorted(
            decode_documents(docs, Customer.from_document, CUSTOMERS_COLLECTION),
            key=lambda c: c.customer_number,
        )
        self._hand_over("_customers", customers)

    def _on_statuses(self, docs: list[Document]) -> None:
        collection = self.screen.status_kind.collection
        records = decode_documents(docs, StatusRecord.from_document, collection)
        self._hand_over("_statuses", build_status_map(records))

    def _hand_over(self, attr: str, value: object) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._apply, attr, value)

    # ── Passes (event loop) ─────────────────────────────────
    def _apply(self, attr: str, value: object) -> None:
        if self._loop is None:
            return
        setattr(self, attr, value)
        if self._projects is None or self._customers is None or self._statuses is None:
            # Wait until every listener has delivered its first snapshot
            return
        task = asyncio.get_running_loop().create_task(self.run_pass())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run_pass(self) -> bool:
        """
        Aggregate over the cached collections.

        Returns True when this pass committed, False when it was
        superseded by a newer pass or failed.
        """
        self._generation += 1
        generation = self._generation
        projects, customers, statuses = self._projects or [], self._customers or [], self._statuses or {}

        try:
            rows = await run_file_screen(self._store, self.screen, projects, customers, statuses)
        except Exception:
            logger.exception("Aggregation pass %d failed for %s", generation, self.screen.name)
            return False

        if generation != self._generation:
            logger.debug(
                "Discarding stale pass %d for %s (latest is %d)",
                generation, self.screen.name, self._generation,
            )
            return False

        self._rows = rows
        self.synced_at = datetime.datetime.now(datetime.timezone.utc)
        logger.debug("Pass %d committed %d rows for %s", generation, len(rows), self.screen.name)
        return True


class ScreenRegistry:
    """
    Serves file-screen rows, live when possible.

    With live sync enabled, rows come from the screen's reconciler once it
    has committed a pass. Otherwise (disabled, or not yet synced) a
    one-shot pass runs against the store.
    """

    def __init__(self, store: DocumentStore, live: bool | None = None) -> None:
        self._store = store
        self._live = settings.LIVE_SYNC_ENABLED if live is None else live
        self._reconcilers: dict[str, LiveReconciler] = {}

    @property
    def live(self) -> bool:
        return self._live

    async def start(self) -> None:
        if not self._live:
            logger.info("Live sync disabled; screens use one-shot passes")
            return
        for screen in FILE_SCREENS:
            reconciler = LiveReconciler(self._store, screen)
            try:
                await reconciler.start()
            except Exception:
                logger.exception("Could not start live sync for %s", screen.name)
                await reconciler.stop()
                continue
            self._reconcilers[screen.name] = reconciler

    async def stop(self) -> None:
        for reconciler in self._reconcilers.values():
            await reconciler.stop()
        self._reconcilers.clear()

    async def rows(self, screen: FileScreen, project_id: str | None = None) -> list[FileRow]:
        reconciler = self._reconcilers.get(screen.name)
        if reconciler is not None and reconciler.ready:
            rows = reconciler.rows()
            if project_id:
                rows = [r for r in rows if r.project_id == project_id]
            return rows
        return await load_file_rows(self._store, screen, project_id)


def get_screen_registry(
    request: Request,
    store: Annotated[DocumentStore, Depends(get_store)],
) -> ScreenRegistry:
    """FastAPI dependency: the app's registry, or a one-shot one if none was started."""
    registry = getattr(request.app.state, "screens", None)
    if registry is None:
        registry = ScreenRegistry(store, live=False)
    return registry

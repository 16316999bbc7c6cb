"""Sync controller: drives page and count fetches into the store.

Every trigger (load_more, reset, refresh_total_count) schedules an
asyncio.Task and returns it at once. Cancelling that task withdraws
interest in it; a pending retry is then dropped without touching the
store. Terminal failures are published on `errors` and never raised
out of the task.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from storesync.config.settings import SyncSettings
from storesync.data.frame import items_to_frame
from storesync.data.types import Item, ItemId
from storesync.logging import get_logger
from storesync.remote.errors import RetriesExhausted
from storesync.remote.gateway import StoreGateway
from storesync.remote.transport import HttpxTransport, Transport
from storesync.sync.aggregates import AggregateDeriver
from storesync.sync.observable import Observable
from storesync.sync.paging import PageWindow
from storesync.sync.retry import BackoffRetrier
from storesync.sync.store import AccumulatorStore

log = get_logger("storesync.sync")


class SyncController:
    def __init__(
        self,
        gateway: StoreGateway,
        retrier: BackoffRetrier,
        store: Optional[AccumulatorStore] = None,
        *,
        initial_take: int = 10,
        start: bool = True,
    ):
        """Wire the pipeline. With start=True this must run inside an event loop."""
        if initial_take <= 0:
            raise ValueError(f"initial_take must be > 0, got {initial_take}")
        self.gateway = gateway
        self.retrier = retrier
        self.store = store if store is not None else AccumulatorStore()
        self.aggregates = AggregateDeriver(self.store)
        self.initial_take = initial_take
        self.errors: Observable[Optional[str]] = Observable("errors", initial=None)
        self._tasks: Set[asyncio.Task] = set()
        if start:
            self.start()

    @classmethod
    def from_settings(cls, settings: SyncSettings, transport: Optional[Transport] = None,
                      *, start: bool = True) -> "SyncController":
        if transport is None:
            transport = HttpxTransport(timeout_s=settings.gateway.timeout_s,
                                       user_agent=settings.gateway.user_agent)
        return cls(
            StoreGateway(transport, settings.gateway),
            BackoffRetrier.from_config(settings.retry),
            AccumulatorStore(stale_appends=settings.sync.stale_appends),
            initial_take=settings.sync.initial_take,
            start=start,
        )

    # -------- triggers --------
    def start(self) -> None:
        """Initial page fetch, deriver subscription and total count fetch."""
        asyncio.get_running_loop()  # RuntimeError outside a loop, before anything is scheduled
        self._fetch_page(0, self.initial_take)
        self.aggregates.attach()
        self.refresh_total_count()

    def load_more(self, page_size: int, already_loaded: int) -> asyncio.Task:
        """Fetch 2 * page_size items starting after `already_loaded`."""
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        if already_loaded < 0:
            raise ValueError(f"already_loaded must be >= 0, got {already_loaded}")
        return self._fetch_page(already_loaded, 2 * page_size)

    def load_more_for(self, window: PageWindow) -> asyncio.Task:
        return self.load_more(window.page_size, window.end)

    def reset(self) -> asyncio.Task:
        """Empty the store now, then refetch the first page and the total count.

        Returns the new first-page task. Fetches already in flight keep running.
        """
        self.store.reset()
        task = self._fetch_page(0, self.initial_take)
        self.refresh_total_count()
        return task

    def refresh_total_count(self) -> asyncio.Task:
        return self._spawn(self._run_count(), "count")

    # -------- mutation passthroughs --------
    async def insert(self, item: Item) -> Item:
        return await self.gateway.insert(item)

    async def delete(self, item_id: ItemId) -> None:
        await self.gateway.delete(item_id)

    # -------- bookkeeping --------
    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled fetch (including ones scheduled meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------- internals --------
    def _fetch_page(self, skip: int, take: int) -> asyncio.Task:
        # generation is captured at issue time; the store decides what to do with stale batches
        return self._spawn(self._run_page(skip, take, self.store.generation), f"page[{skip}:{skip + take}]")

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._done(t, name))
        return task

    def _done(self, task: asyncio.Task, name: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            log.info("%s cancelled", name)
            return
        exc = task.exception()
        if exc is not None:
            log.error("%s crashed", name, exc_info=exc)

    async def _run_page(self, skip: int, take: int, generation: int) -> None:
        try:
            items = await self.retrier.call(self.gateway.fetch_page, skip, take)
        except RetriesExhausted as e:
            self._report(e)
            return
        if log.isEnabledFor(logging.DEBUG):
            log.debug("page skip=%d take=%d\n%s", skip, take, items_to_frame(items).to_string(index=False))
        self.store.append(items, generation=generation)
        self._clear_error()

    async def _run_count(self) -> None:
        try:
            total = await self.retrier.call(self.gateway.fetch_total_count)
        except RetriesExhausted as e:
            self._report(e)
            return
        self.aggregates.set_total_count(total)
        self._clear_error()

    def _report(self, err: RetriesExhausted) -> None:
        msg = err.describe()
        log.error("sync failed: %s", msg)
        self.errors.emit(msg)

    def _clear_error(self) -> None:
        if self.errors.value is not None:
            self.errors.emit(None)

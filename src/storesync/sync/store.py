"""Accumulator store: the single owner and writer of the fetched collection.

States:
  empty                initial, and after reset()
  populated(items)     after the first append

All writes go through _apply() under one lock. Appends are applied in
arrival order. Whether an append issued before the latest reset() still
lands is decided in one place, _accepts(), according to `stale_appends`:

  apply    (default) it lands after whatever arrived post-reset
  discard  it is dropped
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from storesync.data.types import Item
from storesync.logging import get_logger
from storesync.sync.observable import Observable, Subscription

log = get_logger("storesync.store")

Collection = Tuple[Item, ...]

STALE_POLICIES = ("apply", "discard")


class StoreState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"


class AccumulatorStore:
    def __init__(self, stale_appends: str = "apply"):
        if stale_appends not in STALE_POLICIES:
            raise ValueError(f"unknown stale_appends policy {stale_appends!r} (use {', '.join(STALE_POLICIES)})")
        self.stale_appends = stale_appends
        self._lock = threading.RLock()
        self._items: Collection = ()
        self._state = StoreState.EMPTY
        self._generation = 0
        self._stream: Observable[Collection] = Observable("collection", initial=())

    @property
    def generation(self) -> int:
        """Incremented by every reset(); fetches record it when issued."""
        return self._generation

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def items(self) -> Collection:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def observe(self, handler: Callable[[Collection], None]) -> Subscription:
        """Subscribe to the collection; the current value is delivered immediately."""
        # replay and writes share one lock, so the replayed value is never older than the last write
        with self._lock:
            return self._stream.subscribe(handler)

    def append(self, batch: Sequence[Item], generation: Optional[int] = None) -> bool:
        """Append batch to the end of the collection.

        `generation` is the store generation the fetch was issued under;
        None means current. Returns False if the batch was dropped.
        """
        return self._apply(tuple(batch), reset=False, generation=generation)

    def reset(self) -> None:
        """Discard everything. In-flight fetches are not cancelled."""
        self._apply((), reset=True, generation=None)

    def _accepts(self, generation: Optional[int]) -> bool:
        if generation is None or generation == self._generation:
            return True
        return self.stale_appends == "apply"

    def _apply(self, batch: Collection, *, reset: bool, generation: Optional[int]) -> bool:
        with self._lock:
            if reset:
                self._generation += 1
                self._items = ()
                self._state = StoreState.EMPTY
            else:
                if not self._accepts(generation):
                    log.info("dropping %d item(s) from generation %s (now %d)",
                             len(batch), generation, self._generation)
                    return False
                self._items = self._items + batch
                self._state = StoreState.POPULATED
            snapshot = self._items
            # emit under the lock so subscribers see writes in the order they were applied
            self._stream.emit(snapshot)
        return True

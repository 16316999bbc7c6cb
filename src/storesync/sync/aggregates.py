"""Aggregates derived from the accumulated collection.

- extremal: the highest-priced item, first one in collection order on ties.
  Nothing is emitted for an empty collection, and the last value is dropped.
- local_count: len(collection), starting at 0 before anything is loaded.
- total_count: remote cardinality, fed from outside; None means unknown.
- snapshot: all three together, re-emitted whenever any of them changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from storesync.data.types import Item
from storesync.sync.observable import Observable, Subscription
from storesync.sync.store import AccumulatorStore, Collection


@dataclass(frozen=True)
class AggregateSnapshot:
    extremal: Optional[Item] = None
    local_count: int = 0
    total_count: Optional[int] = None


def extremal_item(items: Sequence[Item]) -> Optional[Item]:
    # max() keeps the first of equal keys
    if not items:
        return None
    return max(items, key=lambda it: it.price)


class AggregateDeriver:
    def __init__(self, store: AccumulatorStore):
        self.store = store
        self.extremal: Observable[Item] = Observable("extremal")
        self.local_count: Observable[int] = Observable("local_count", initial=0)
        self.total_count: Observable[Optional[int]] = Observable("total_count", initial=None)
        self.snapshot: Observable[AggregateSnapshot] = Observable("snapshot", initial=AggregateSnapshot())
        self._current_extremal: Optional[Item] = None
        self._sub: Optional[Subscription] = None

    @property
    def attached(self) -> bool:
        return self._sub is not None

    def attach(self) -> None:
        if self._sub is None:
            self._sub = self.store.observe(self._on_collection)

    def detach(self) -> None:
        if self._sub is not None:
            self._sub.cancel()
            self._sub = None

    def set_total_count(self, total: Optional[int]) -> None:
        self.total_count.emit(total)
        self._publish()

    def current(self) -> AggregateSnapshot:
        return AggregateSnapshot(
            extremal=self._current_extremal,
            local_count=self.local_count.value or 0,
            total_count=self.total_count.value,
        )

    def _on_collection(self, items: Collection) -> None:
        self._current_extremal = extremal_item(items)
        if self._current_extremal is not None:
            self.extremal.emit(self._current_extremal)
        else:
            self.extremal.clear()
        self.local_count.emit(len(items))
        self._publish()

    def _publish(self) -> None:
        self.snapshot.emit(self.current())

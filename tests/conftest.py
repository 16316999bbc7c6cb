from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import Deque, Dict, List, Tuple

import pytest

from storesync.data.types import Item
from storesync.remote.errors import PermanentFetchFailure
from storesync.sync.retry import BackoffRetrier


def make_items(prefix: str, n: int, price: float = 10.0) -> List[Item]:
    return [Item(id=f"{prefix}{i}", price=price + i) for i in range(n)]


class FakeGateway:
    """In-memory stand-in for StoreGateway with scripted responses.

    queue(skip, take, batch)   next successful response for that page
    fail(skip, take, exc)      raise exc on the next call, before any queued batch
    hold(skip, take)           returns an Event; calls for that page wait on it
    """

    def __init__(self, total: int = 0):
        self.total = total
        self.calls: List[Tuple[int, int]] = []
        self.count_calls = 0
        self.inserted: List[Item] = []
        self.deletable: set = set()
        self._batches: Dict[Tuple[int, int], Deque[List[Item]]] = defaultdict(deque)
        self._failures: Dict[Tuple[int, int], Deque[Exception]] = defaultdict(deque)
        self._count_failures: Deque[Exception] = deque()
        self._gates: Dict[Tuple[int, int], asyncio.Event] = {}

    def queue(self, skip: int, take: int, batch: List[Item]) -> None:
        self._batches[(skip, take)].append(list(batch))

    def fail(self, skip: int, take: int, exc: Exception, times: int = 1) -> None:
        for _ in range(times):
            self._failures[(skip, take)].append(exc)

    def fail_count(self, exc: Exception, times: int = 1) -> None:
        for _ in range(times):
            self._count_failures.append(exc)

    def hold(self, skip: int, take: int) -> asyncio.Event:
        ev = asyncio.Event()
        self._gates[(skip, take)] = ev
        return ev

    def release(self, skip: int, take: int) -> None:
        self._gates.pop((skip, take)).set()

    def calls_for(self, skip: int, take: int) -> int:
        return sum(1 for c in self.calls if c == (skip, take))

    async def fetch_page(self, skip: int, take: int) -> List[Item]:
        key = (skip, take)
        self.calls.append(key)
        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()
        if self._failures[key]:
            raise self._failures[key].popleft()
        if self._batches[key]:
            return self._batches[key].popleft()
        return []

    async def fetch_total_count(self) -> int:
        self.count_calls += 1
        if self._count_failures:
            raise self._count_failures.popleft()
        return self.total

    async def insert(self, item: Item) -> Item:
        self.inserted.append(item)
        return item

    async def delete(self, item_id) -> None:
        if item_id not in self.deletable:
            raise PermanentFetchFailure("delete request failed: HTTP 404", status_code=404)
        self.deletable.discard(item_id)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next real suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(total=42)


@pytest.fixture
def fast_retrier() -> BackoffRetrier:
    return BackoffRetrier(base_delay_s=0.0, max_attempts=3)

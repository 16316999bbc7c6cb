"""Push-based value channel with replay of the latest value.

Handlers that raise are logged and skipped; a failing handler never
terminates the channel or blocks delivery to the others.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from storesync.logging import get_logger

log = get_logger("storesync.observable")

T = TypeVar("T")

_UNSET = object()


@dataclass
class Subscription:
    """Handle returned by subscribe(); cancel() stops notifications."""

    handler: Callable
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active: bool = True
    _owner: Optional["Observable"] = field(default=None, repr=False)

    def cancel(self) -> None:
        self.active = False
        if self._owner is not None:
            self._owner._remove(self)
            self._owner = None


class Observable(Generic[T]):
    def __init__(self, name: str, initial: object = _UNSET, replay: bool = True):
        self.name = name
        self.replay = replay
        self._value: object = initial
        self._subs: List[Subscription] = []
        self._lock = threading.Lock()

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> Optional[T]:
        """Latest value, or None when nothing has been emitted yet."""
        v = self._value
        return None if v is _UNSET else v  # type: ignore[return-value]

    def subscribe(self, handler: Callable[[T], None]) -> Subscription:
        sub = Subscription(handler=handler, _owner=self)
        with self._lock:
            self._subs.append(sub)
            current = self._value
        if self.replay and current is not _UNSET:
            self._deliver(sub, current)  # type: ignore[arg-type]
        return sub

    def clear(self) -> None:
        """Drop the held value; late subscribers get nothing until the next emit."""
        with self._lock:
            self._value = _UNSET

    def emit(self, value: T) -> None:
        with self._lock:
            self._value = value
            subs = list(self._subs)
        for sub in subs:
            self._deliver(sub, value)

    def _deliver(self, sub: Subscription, value: T) -> None:
        if not sub.active:
            return
        try:
            sub.handler(value)
        except Exception:
            log.exception("subscriber %s of %s failed", sub.id, self.name)

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            try:
                self._subs.remove(sub)
            except ValueError:
                pass

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass
class PageWindow:
    """Client-side page cursor over the accumulated collection."""

    page_size: int = 5
    start: int = field(init=False, default=0)
    end: int = field(init=False, default=0)
    current_page: int = field(init=False, default=1)

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")
        self.reset()

    @property
    def to_load(self) -> int:
        """How many items one load-more asks for."""
        return self.page_size * 2

    def reset(self) -> None:
        self.start = 0
        self.end = self.page_size
        self.current_page = 1

    def next_page(self) -> None:
        self.start += self.page_size
        self.end += self.page_size
        self.current_page += 1

    def previous_page(self) -> None:
        if self.current_page <= 1:
            return
        self.start -= self.page_size
        self.end -= self.page_size
        self.current_page -= 1

    def has_next(self, loaded: int) -> bool:
        return self.end < loaded

    def visible(self, items: Sequence[T]) -> Sequence[T]:
        return items[self.start:self.end]

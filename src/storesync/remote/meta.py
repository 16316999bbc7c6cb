"""Fetch metadata.

Kept separate so the gateway can expose runtime info (paging, timings)
without changing return types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class FetchMeta:
    kind: str  # page/count
    url: str
    skip: Optional[int] = None
    take: Optional[int] = None
    records: int = 0
    status: Optional[int] = None
    elapsed_s: float = 0.0
    error: str = ""

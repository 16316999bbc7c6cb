"""Backoff retrier around a single asynchronous operation.

Policies:
  constant     every wait is base_delay_s (default, matches the reference service client)
  exponential  base_delay_s * 2**attempt, capped at max_delay_s

The wait is an asyncio.sleep, so it never blocks other tasks. Cancelling
the awaiting task during a wait discards the pending retry: the operation
is not invoked again.
"""

from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from storesync.config.settings import RetryConfig
from storesync.logging import get_logger
from storesync.remote.errors import FetchFailure, PermanentFetchFailure, RetriesExhausted

log = get_logger("storesync.retry")

T = TypeVar("T")

POLICIES = ("constant", "exponential")


@dataclass
class RetryState:
    attempt: int  # 0-based
    next_delay_s: float
    max_attempts: int


class BackoffRetrier:
    def __init__(
        self,
        base_delay_s: float = 1.0,
        max_attempts: int = 3,
        policy: str = "constant",
        max_delay_s: float = 3.0,
        retry_permanent: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if base_delay_s < 0:
            raise ValueError(f"base_delay_s must be >= 0, got {base_delay_s}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if policy not in POLICIES:
            raise ValueError(f"unknown backoff policy {policy!r} (use {', '.join(POLICIES)})")
        self.base_delay_s = float(base_delay_s)
        self.max_attempts = int(max_attempts)
        self.policy = policy
        self.max_delay_s = float(max_delay_s)
        self.retry_permanent = retry_permanent
        self._sleep = sleep

    @classmethod
    def from_config(cls, cfg: RetryConfig) -> "BackoffRetrier":
        return cls(
            base_delay_s=cfg.base_delay_s,
            max_attempts=cfg.max_attempts,
            policy=cfg.policy,
            max_delay_s=cfg.max_delay_s,
            retry_permanent=cfg.retry_permanent,
        )

    def delay_for(self, attempt: int) -> float:
        if self.policy == "exponential":
            return min(self.base_delay_s * (2 ** attempt), self.max_delay_s)
        return self.base_delay_s

    async def call(self, op: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run op until it succeeds or max_attempts is reached.

        Only FetchFailure is retried; anything else propagates unchanged.
        Raises RetriesExhausted wrapping the last failure.
        """
        name = getattr(op, "__name__", repr(op))
        state = RetryState(attempt=0, next_delay_s=self.delay_for(0), max_attempts=self.max_attempts)
        while True:
            try:
                return await op(*args, **kwargs)
            except FetchFailure as e:
                last = e
            state.attempt += 1

            if isinstance(last, PermanentFetchFailure) and not self.retry_permanent:
                break
            if state.attempt >= state.max_attempts:
                break

            state.next_delay_s = self.delay_for(state.attempt - 1)
            log.warning(
                "%s attempt %d/%d failed, retrying in %.2fs: %s",
                name, state.attempt, state.max_attempts, state.next_delay_s, last,
            )
            await self._sleep(state.next_delay_s)

        log.error("%s failed after %d attempt(s): %s", name, state.attempt, last)
        raise RetriesExhausted(last, attempts=state.attempt)

    def wrap(self, op: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Return op with this retry policy applied."""

        @functools.wraps(op)
        async def wrapper(*args, **kwargs):
            return await self.call(op, *args, **kwargs)

        return wrapper

"""Fetch failure taxonomy.

FetchFailure
  +- TransientFetchFailure   network / timeout / 408 / 429 / 5xx
  +- PermanentFetchFailure   other 4xx, malformed body
  +- RetriesExhausted        wraps the last failure after max attempts
"""

from __future__ import annotations

from typing import Optional


class FetchFailure(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def describe(self) -> str:
        """Single user-facing line."""
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message


class TransientFetchFailure(FetchFailure):
    pass


class PermanentFetchFailure(FetchFailure):
    pass


class RetriesExhausted(FetchFailure):
    def __init__(self, last_error: FetchFailure, attempts: int):
        super().__init__(
            f"{last_error.message}: retries exhausted after {attempts} attempt(s)",
            status_code=last_error.status_code,
        )
        self.last_error = last_error
        self.attempts = attempts


def is_transient_status(status: int) -> bool:
    return status in (408, 429) or 500 <= status <= 599


def failure_for_status(status: int, message: str) -> FetchFailure:
    if is_transient_status(status):
        return TransientFetchFailure(message, status_code=status)
    return PermanentFetchFailure(message, status_code=status)

"""Transport capability: issue a request, eventually produce (status, body) or fail."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from storesync.logging import get_logger
from storesync.remote.errors import TransientFetchFailure

log = get_logger("storesync.transport")


@dataclass(frozen=True)
class TransportResponse:
    status: int
    body: str


class Transport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> TransportResponse: ...


class HttpxTransport:
    """httpx.AsyncClient-backed transport.

    Network-level failures (connect errors, timeouts) surface as
    TransientFetchFailure; every HTTP status, including errors, is returned
    to the caller untouched.
    """

    def __init__(
        self,
        timeout_s: float = 10.0,
        user_agent: str = "storesync/0.3",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_s,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> TransportResponse:
        try:
            resp = await self._client.request(method, url, params=params, json=json)
        except httpx.TimeoutException as e:
            raise TransientFetchFailure(f"{method} {url} timed out") from e
        except httpx.TransportError as e:
            raise TransientFetchFailure(f"{method} {url} failed: {e}") from e
        log.debug("%s %s -> %s", method, resp.request.url, resp.status_code)
        return TransportResponse(status=resp.status_code, body=resp.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

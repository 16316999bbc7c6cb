"""Fetch gateway for the products REST resource.

List/count requests go through a Transport; every non-success outcome is
normalized into the FetchFailure hierarchy (see storesync.remote.errors).
The gateway does not retry; wrap its calls with a BackoffRetrier.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, List, Optional

from storesync.config.settings import GatewayConfig
from storesync.data.types import Item, ItemId, PageRequest
from storesync.logging import get_logger
from storesync.remote.errors import FetchFailure, PermanentFetchFailure, failure_for_status
from storesync.remote.meta import FetchMeta
from storesync.remote.transport import Transport, TransportResponse

log = get_logger("storesync.gateway")

ORDER_BY = "ModifiedDate desc"


def _decode(resp: TransportResponse, what: str) -> Any:
    try:
        return json.loads(resp.body) if resp.body else None
    except ValueError as e:
        raise PermanentFetchFailure(f"malformed {what} response body", status_code=resp.status) from e


class StoreGateway:
    def __init__(self, transport: Transport, cfg: GatewayConfig = GatewayConfig()):
        self.transport = transport
        self.cfg = cfg
        self.last_meta: Optional[FetchMeta] = None

    @property
    def base_url(self) -> str:
        return self.cfg.base_url

    async def _send(self, method: str, url: str, what: str, **kwargs: Any) -> TransportResponse:
        resp = await self.transport.request(method, url, **kwargs)
        if not 200 <= resp.status <= 299:
            raise failure_for_status(resp.status, f"{what} request failed: HTTP {resp.status}")
        return resp

    # -------- list --------
    async def fetch_page(self, skip: int, take: int) -> List[Item]:
        """Fetch one page ordered by last-modified descending."""
        req = PageRequest(skip=skip, take=take)
        params: Dict[str, Any] = {"$skip": req.skip, "$top": req.take, "$orderby": ORDER_BY}
        meta = FetchMeta(kind="page", url=self.base_url, skip=req.skip, take=req.take)
        self.last_meta = meta

        t0 = time.monotonic()
        try:
            resp = await self._send("GET", self.base_url, "page", params=params)
            meta.status = resp.status
            data = _decode(resp, "page")
            if not isinstance(data, list):
                raise PermanentFetchFailure("page response is not a list", status_code=resp.status)
            try:
                items = [Item.from_json(x) for x in data]
            except ValueError as e:
                raise PermanentFetchFailure(f"malformed item in page: {e}", status_code=resp.status) from e
        except FetchFailure as e:
            meta.status = e.status_code
            meta.error = e.message
            raise
        finally:
            meta.elapsed_s = time.monotonic() - t0

        if self.cfg.page_delay_s > 0:
            await asyncio.sleep(self.cfg.page_delay_s)

        meta.records = len(items)
        log.debug("page skip=%d take=%d -> %d items", req.skip, req.take, len(items))
        return items

    # -------- count --------
    async def fetch_total_count(self) -> int:
        url = self.base_url + "count"
        meta = FetchMeta(kind="count", url=url)
        self.last_meta = meta

        t0 = time.monotonic()
        try:
            resp = await self._send("GET", url, "count")
            meta.status = resp.status
            data = _decode(resp, "count")
            if isinstance(data, bool) or not isinstance(data, int) or data < 0:
                raise PermanentFetchFailure(f"count response is not a non-negative integer: {data!r}",
                                            status_code=resp.status)
        except FetchFailure as e:
            meta.status = e.status_code
            meta.error = e.message
            raise
        finally:
            meta.elapsed_s = time.monotonic() - t0

        meta.records = 1
        return data

    # -------- mutations --------
    async def insert(self, item: Item) -> Item:
        resp = await self._send("POST", self.base_url, "insert", json=item.to_json())
        data = _decode(resp, "insert")
        if self.cfg.insert_delay_s > 0:
            await asyncio.sleep(self.cfg.insert_delay_s)
        if data is None:
            return item
        try:
            return Item.from_json(data)
        except ValueError as e:
            raise PermanentFetchFailure(f"malformed insert response: {e}", status_code=resp.status) from e

    async def delete(self, item_id: ItemId) -> None:
        await self._send("DELETE", f"{self.base_url}{item_id}", "delete")
        log.info("deleted item %s", item_id)

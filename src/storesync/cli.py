"""storesync CLI.

  storesync load --pages 2      initial page + N load-more calls, then print table and aggregates
  storesync count               remote total count
  storesync insert --json '{...}'
  storesync delete ID
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
from typing import Optional, Sequence

from storesync.config import SyncSettings, load_config
from storesync.data.frame import format_table
from storesync.data.types import Item
from storesync.logging import get_logger, setup_logging
from storesync.remote.errors import FetchFailure
from storesync.remote.gateway import StoreGateway
from storesync.remote.transport import HttpxTransport
from storesync.sync.controller import SyncController
from storesync.sync.retry import BackoffRetrier

log = get_logger("storesync.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="storesync", description="Sync a paginated remote product list.")
    p.add_argument("--config", default=os.environ.get("STORESYNC_CONFIG", ""))
    p.add_argument("--log_level", default=None)
    p.add_argument("--base_url", default=None)

    sub = p.add_subparsers(dest="cmd", required=True)

    lp = sub.add_parser("load", help="fetch the first page plus N more")
    lp.add_argument("--pages", type=int, default=0, help="load-more calls after the initial page")
    lp.add_argument("--page_size", type=int, default=None)

    sub.add_parser("count", help="print the remote total count")

    ip = sub.add_parser("insert", help="insert one item")
    ip.add_argument("--json", dest="payload", required=True)

    dp = sub.add_parser("delete", help="delete one item by id")
    dp.add_argument("item_id")

    return p


def _settings(args: argparse.Namespace) -> SyncSettings:
    overrides = {}
    if args.base_url:
        overrides["gateway"] = {"base_url": args.base_url}
    if args.log_level:
        overrides["log"] = {"level": args.log_level}
    return SyncSettings.from_dict(load_config(file_path=args.config or None, overrides=overrides))


async def _load(settings: SyncSettings, pages: int, page_size: Optional[int]) -> int:
    size = page_size or settings.sync.page_size
    async with HttpxTransport(settings.gateway.timeout_s, settings.gateway.user_agent) as transport:
        ctl = SyncController.from_settings(settings, transport)
        await ctl.wait_idle()
        for _ in range(max(0, pages)):
            ctl.load_more(size, len(ctl.store))
            await ctl.wait_idle()

    items = ctl.store.items
    print(format_table(items))
    snap = ctl.aggregates.current()
    top = "n/a" if snap.extremal is None else f"{snap.extremal.id} ({snap.extremal.price:.2f})"
    total = "unknown" if snap.total_count is None else str(snap.total_count)
    print(f"loaded={snap.local_count} total={total} most_expensive={top}")
    if ctl.errors.value:
        print(f"error: {ctl.errors.value}")
        return 1
    return 0


async def _count(settings: SyncSettings) -> int:
    async with HttpxTransport(settings.gateway.timeout_s, settings.gateway.user_agent) as transport:
        gw = StoreGateway(transport, settings.gateway)
        total = await BackoffRetrier.from_config(settings.retry).call(gw.fetch_total_count)
    print(total)
    return 0


async def _insert(settings: SyncSettings, payload: str) -> int:
    item = Item.from_json(json.loads(payload))
    async with HttpxTransport(settings.gateway.timeout_s, settings.gateway.user_agent) as transport:
        stored = await StoreGateway(transport, settings.gateway).insert(item)
    print(json.dumps(stored.to_json(), ensure_ascii=False))
    return 0


async def _delete(settings: SyncSettings, item_id: str) -> int:
    async with HttpxTransport(settings.gateway.timeout_s, settings.gateway.user_agent) as transport:
        await StoreGateway(transport, settings.gateway).delete(item_id)
    print(f"deleted {item_id}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings(args)
    setup_logging(settings.log)

    try:
        if args.cmd == "load":
            return asyncio.run(_load(settings, args.pages, args.page_size))
        if args.cmd == "count":
            return asyncio.run(_count(settings))
        if args.cmd == "insert":
            return asyncio.run(_insert(settings, args.payload))
        if args.cmd == "delete":
            return asyncio.run(_delete(settings, args.item_id))
    except FetchFailure as e:
        log.error("%s failed: %s", args.cmd, e.describe())
        return 1
    except ValueError as e:
        log.error("bad input: %s", e)
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main())

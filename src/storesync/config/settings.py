"""Typed view over the merged config dict."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from storesync.logging import LogConfig

DEFAULTS: Dict[str, Any] = {
    "gateway": {
        "base_url": "https://storerestservice.azurewebsites.net/api/products/",
        "timeout_s": 10.0,
        "user_agent": "storesync/0.3",
        "page_delay_s": 0.0,
        "insert_delay_s": 0.0,
    },
    "retry": {
        "base_delay_s": 1.0,
        "max_attempts": 3,
        "policy": "constant",
        "max_delay_s": 3.0,
        "retry_permanent": True,
    },
    "sync": {
        "page_size": 5,
        "initial_take": 10,
        "stale_appends": "apply",
    },
    "log": {
        "level": "info",
        "json": False,
        "to_file": None,
    },
}


@dataclass(frozen=True)
class GatewayConfig:
    base_url: str = DEFAULTS["gateway"]["base_url"]
    timeout_s: float = 10.0
    user_agent: str = "storesync/0.3"
    page_delay_s: float = 0.0
    insert_delay_s: float = 0.0


@dataclass(frozen=True)
class RetryConfig:
    base_delay_s: float = 1.0
    max_attempts: int = 3
    policy: str = "constant"  # constant|exponential
    max_delay_s: float = 3.0
    retry_permanent: bool = True


@dataclass(frozen=True)
class SyncConfig:
    page_size: int = 5
    initial_take: int = 10
    stale_appends: str = "apply"  # apply|discard


@dataclass(frozen=True)
class SyncSettings:
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SyncSettings":
        g = dict(data.get("gateway") or {})
        r = dict(data.get("retry") or {})
        s = dict(data.get("sync") or {})
        lg = dict(data.get("log") or {})

        base_url = str(g.get("base_url", GatewayConfig.base_url))
        if not base_url.endswith("/"):
            base_url += "/"

        return cls(
            gateway=GatewayConfig(
                base_url=base_url,
                timeout_s=float(g.get("timeout_s", 10.0)),
                user_agent=str(g.get("user_agent", "storesync/0.3")),
                page_delay_s=float(g.get("page_delay_s", 0.0)),
                insert_delay_s=float(g.get("insert_delay_s", 0.0)),
            ),
            retry=RetryConfig(
                base_delay_s=float(r.get("base_delay_s", 1.0)),
                max_attempts=int(r.get("max_attempts", 3)),
                policy=str(r.get("policy", "constant")).strip().lower(),
                max_delay_s=float(r.get("max_delay_s", 3.0)),
                retry_permanent=bool(r.get("retry_permanent", True)),
            ),
            sync=SyncConfig(
                page_size=int(s.get("page_size", 5)),
                initial_take=int(s.get("initial_take", 10)),
                stale_appends=str(s.get("stale_appends", "apply")).strip().lower(),
            ),
            log=LogConfig(
                level=str(lg.get("level", "info")),
                json=bool(lg.get("json", False)),
                to_file=lg.get("to_file") or None,
            ),
        )

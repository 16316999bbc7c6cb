"""Config module.

  - load_config(defaults, file_path) -> dict   (layered: defaults < file < env)
  - SyncSettings.from_dict(dict) -> typed settings
"""

from __future__ import annotations

from .loader import load_config
from .providers import (
    ConfigManager,
    ConfigProvider,
    DictProvider,
    EnvProvider,
    FileProvider,
)
from .settings import (
    DEFAULTS,
    GatewayConfig,
    RetryConfig,
    SyncConfig,
    SyncSettings,
)

__all__ = [
    "load_config",
    "ConfigProvider",
    "ConfigManager",
    "DictProvider",
    "EnvProvider",
    "FileProvider",
    "DEFAULTS",
    "GatewayConfig",
    "RetryConfig",
    "SyncConfig",
    "SyncSettings",
]

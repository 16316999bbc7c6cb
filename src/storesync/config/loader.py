from __future__ import annotations

from typing import Any, Dict, List, Optional

from .providers import ConfigManager, ConfigProvider, DictProvider, EnvProvider, FileProvider
from .settings import DEFAULTS


def load_config(
    defaults: Optional[Dict[str, Any]] = None,
    file_path: Optional[str] = None,
    *,
    use_env: bool = True,
    env_prefix: str = "STORESYNC_",
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Load layered config: defaults < file < env < overrides (CLI).

    `defaults` is merged over the built-in DEFAULTS, so callers only need
    to pass what they change.
    """
    providers: List[ConfigProvider] = [
        DictProvider(name="builtin", data=DEFAULTS),
        DictProvider(data=dict(defaults or {})),
    ]
    if file_path:
        providers.append(FileProvider(path=file_path, optional=False))
    if use_env:
        providers.append(EnvProvider(prefix=env_prefix))
    if overrides:
        providers.append(DictProvider(name="overrides", data=overrides))
    return ConfigManager(providers).load()

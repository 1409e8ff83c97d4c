"""Bridge configuration — debugging endpoint, default tab URL, debug logging.

All config lives in ~/.keytap/config.json. Environment variables override
the file:

    KEYTAP_HOST          debugging host (default: http://127.0.0.1)
    KEYTAP_PORT          debugging port (default: 9222)
    KEYTAP_DEFAULT_URL   URL loaded into tabs created by `new`
    KEYTAP_DEBUG         log protocol traffic (1/true/yes/on)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_DIR = Path.home() / ".keytap"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_HOST = "http://127.0.0.1"
DEFAULT_PORT = 9222
DEFAULT_URL = "about:blank"

_TRUTHY = {"1", "true", "yes", "on"}


def load_config() -> dict[str, Any]:
    """Load the config file. Returns {} if missing or unreadable."""
    if CONFIG_FILE.exists():
        try:
            data = json.loads(CONFIG_FILE.read_text())
            if isinstance(data, dict):
                return data
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Write the config file."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(config, indent=2) + "\n")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


@dataclass
class BridgeConfig:
    """Settings shared by the tab directory, session and dispatcher."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    default_url: str = DEFAULT_URL
    debug: bool = False

    @property
    def base_url(self) -> str:
        return f"{self.host.rstrip('/')}:{self.port}"

    @classmethod
    def load(cls, overrides: dict[str, Any] | None = None) -> BridgeConfig:
        """Build a config from defaults, then the config file, then env vars.

        Args:
            overrides: Values that win over everything else (CLI flags).

        Raises:
            ValueError: if the port is not an integer.
        """
        merged: dict[str, Any] = {}
        file_cfg = load_config()
        for key in ("host", "port", "default_url", "debug"):
            if key in file_cfg:
                merged[key] = file_cfg[key]

        env_map = {
            "host": "KEYTAP_HOST",
            "port": "KEYTAP_PORT",
            "default_url": "KEYTAP_DEFAULT_URL",
            "debug": "KEYTAP_DEBUG",
        }
        for key, env_name in env_map.items():
            value = os.environ.get(env_name)
            if value:
                merged[key] = value

        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})

        cfg = cls()
        if "host" in merged:
            cfg.host = str(merged["host"])
        if "port" in merged:
            try:
                cfg.port = int(merged["port"])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid debugging port: {merged['port']!r}")
        if "default_url" in merged:
            cfg.default_url = str(merged["default_url"])
        if "debug" in merged:
            cfg.debug = _as_bool(merged["debug"])
        return cfg

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .env import load_env_files
from .plugins.errors import ConfigError
from .urls import root_url

APP = "pluginctl"


def config_dir() -> Path:
    """
    Cross-platform config directory:
      - Windows: %APPDATA%\\pluginctl
      - macOS/Linux: $XDG_CONFIG_HOME/pluginctl or ~/.config/pluginctl
    """
    if os.name == "nt":
        base = os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / APP
    return Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))) / APP


def config_path() -> Path:
    return config_dir() / "config.json"


def _timeout(value, source: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout {value!r} in {source}: expected a number of seconds")


@dataclass
class Settings:
    enabled_plugins_file: str = ""   # empty = <config dir>/enabled_plugins
    plugins_dir: str = ""            # empty = <config dir>/plugins
    node_url: str = "http://localhost:15672"
    token: str = ""                  # bearer token for the node's plugin API
    timeout_s: float = 30.0

    def __post_init__(self):
        if not self.enabled_plugins_file:
            self.enabled_plugins_file = str(config_dir() / "enabled_plugins")
        if not self.plugins_dir:
            self.plugins_dir = str(config_dir() / "plugins")

    @staticmethod
    def load(path: Optional[Path] = None) -> "Settings":
        path = path or config_path()

        # Load .env files before reading environment variables
        # Priority: config dir .env < current dir .env < existing env vars
        load_env_files(config_dir())

        data: dict = {}

        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except Exception:
                data = {}
            if not isinstance(data, dict):
                data = {}

        s = Settings(
            enabled_plugins_file=str(data.get("enabled_plugins_file", "")),
            plugins_dir=str(data.get("plugins_dir", "")),
            node_url=str(data.get("node_url", Settings.node_url)),
            token=str(data.get("token", Settings.token)),
            timeout_s=_timeout(data.get("timeout_s", Settings.timeout_s), str(path)),
        )

        # Environment overrides (highest priority)
        s.enabled_plugins_file = os.environ.get("PLUGINCTL_ENABLED_PLUGINS_FILE", s.enabled_plugins_file)
        s.plugins_dir = os.environ.get("PLUGINCTL_PLUGINS_DIR", s.plugins_dir)
        s.node_url = os.environ.get("PLUGINCTL_NODE_URL", s.node_url)
        s.token = os.environ.get("PLUGINCTL_NODE_TOKEN", s.token)
        if os.environ.get("PLUGINCTL_TIMEOUT"):
            s.timeout_s = _timeout(os.environ["PLUGINCTL_TIMEOUT"], "PLUGINCTL_TIMEOUT")

        s.node_url = root_url(s.node_url)

        return s

    def save(self, path: Optional[Path] = None) -> Path:
        path = path or config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "enabled_plugins_file": self.enabled_plugins_file,
            "plugins_dir": self.plugins_dir,
            "node_url": self.node_url,
            "token": self.token,
            "timeout_s": self.timeout_s,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path

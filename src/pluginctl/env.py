""".env support for pluginctl settings.

Only PLUGINCTL_* variables are taken from .env files; everything else in
them is ignored so a project .env cannot leak unrelated settings into the
process. Priority order (highest to lowest):
1. Existing environment variables (never overwritten)
2. .env in current working directory
3. .env in config directory (~/.config/pluginctl/.env)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable

PREFIX = "PLUGINCTL_"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    # Unquoted values may carry a trailing comment
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def parse_env_file(path: Path) -> Dict[str, str]:
    """Parse the PLUGINCTL_* assignments of a .env file.

    Accepts `KEY=value` and `export KEY=value`, blank lines and # comments.
    """
    result: Dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return result

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()

        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key.startswith(PREFIX):
            continue
        result[key] = _unquote(value.strip())

    return result


def env_files(config_dir: Path) -> Iterable[Path]:
    """Candidate .env files, lowest priority first."""
    return (config_dir / ".env", Path.cwd() / ".env")


def load_env_files(config_dir: Path) -> None:
    """Load PLUGINCTL_* variables from .env files into os.environ.

    Existing environment variables are NEVER overwritten.
    """
    combined: Dict[str, str] = {}
    for env_file in env_files(config_dir):
        combined.update(parse_env_file(env_file))

    for key, value in combined.items():
        os.environ.setdefault(key, value)

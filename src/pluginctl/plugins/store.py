"""Enabled-plugins file.

The file holds a JSON array of plugin names. Writes go through a temp file
in the same directory followed by os.replace, so a reader sees either the
old list or the new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Set

from .errors import PersistenceFailure

logger = logging.getLogger(__name__)


def read_enabled(path: Path) -> Set[str]:
    """Read the explicitly enabled plugin names. A missing file is empty."""
    path = Path(path)
    if not path.exists():
        return set()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PersistenceFailure(path, f"invalid JSON: {e}")
    except UnicodeDecodeError as e:
        raise PersistenceFailure(path, f"not valid UTF-8: {e}")
    except OSError as e:
        raise PersistenceFailure(path, str(e))

    if not isinstance(data, list) or not all(isinstance(n, str) for n in data):
        raise PersistenceFailure(path, "expected a list of plugin names")
    return set(data)


def write_enabled(path: Path, names: Iterable[str]) -> None:
    """Atomically replace the enabled-plugins file with `names`."""
    path = Path(path)
    payload = json.dumps(sorted(set(names)), indent=2) + "\n"
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise PersistenceFailure(path, str(e))
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    logger.info(f"Wrote enabled plugins file {path}")

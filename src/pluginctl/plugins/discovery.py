"""Plugin discovery - scans the plugins directory for manifests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from .errors import CatalogError
from .models import Catalog, PluginDescriptor, PluginKind

logger = logging.getLogger(__name__)

MANIFEST_FILE = "plugin.json"


def _load_manifest(manifest_file: Path) -> PluginDescriptor:
    try:
        data = json.loads(manifest_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in {manifest_file}: {e}")
    except UnicodeDecodeError as e:
        raise CatalogError(f"Invalid encoding in {manifest_file}: {e}")
    except OSError as e:
        raise CatalogError(f"Cannot read {manifest_file}: {e}")

    if not isinstance(data, dict):
        raise CatalogError(f"Invalid manifest in {manifest_file}: expected an object")

    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise CatalogError(f"Invalid manifest in {manifest_file}: 'name' is required")

    deps = data.get("dependencies", [])
    if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
        raise CatalogError(
            f"Invalid manifest in {manifest_file}: 'dependencies' must be a list of names"
        )

    try:
        kind = PluginKind(data.get("type", PluginKind.PLUGIN.value))
    except ValueError:
        raise CatalogError(
            f"Invalid manifest in {manifest_file}: unknown type {data.get('type')!r}"
        )

    return PluginDescriptor(
        name=name,
        version=str(data.get("version", "")),
        description=str(data.get("description", "")),
        dependencies=tuple(deps),
        kind=kind,
    )


def discover(directory: Path) -> List[PluginDescriptor]:
    """Return the descriptors of every plugin under `directory`.

    Each immediate subdirectory holding a plugin.json is one plugin.
    Subdirectories are visited in sorted order so the result is stable.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise CatalogError(f"Plugins directory not found: {directory}")

    descriptors = []
    for item in sorted(directory.iterdir()):
        if not item.is_dir():
            continue
        manifest_file = item / MANIFEST_FILE
        if not manifest_file.exists():
            continue
        descriptor = _load_manifest(manifest_file)
        logger.debug(f"Discovered plugin: {descriptor.name} {descriptor.version} at {item}")
        descriptors.append(descriptor)

    logger.info(f"Discovered {len(descriptors)} plugin(s) in {directory}")
    return descriptors


def load_catalog(directory: Path) -> Catalog:
    """Scan `directory` and build the catalog for this invocation."""
    return Catalog(discover(directory))

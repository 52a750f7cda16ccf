"""Plugin catalog models.

Defines the descriptors read from the plugins directory and the catalog
that maps plugin names to them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class PluginKind(str, Enum):
    """What a catalog entry represents."""
    PLUGIN = "plugin"       # User-facing plugin
    LIBRARY = "library"     # Internal dependency, hidden from listings and counts


@dataclass(frozen=True)
class PluginDescriptor:
    """Metadata of one plugin found on disk."""
    name: str
    version: str = ""
    description: str = ""
    dependencies: Tuple[str, ...] = field(default_factory=tuple)
    kind: PluginKind = PluginKind.PLUGIN

    def __post_init__(self):
        # Frozen: normalize through object.__setattr__
        if not isinstance(self.dependencies, tuple):
            object.__setattr__(self, "dependencies", tuple(self.dependencies))
        if isinstance(self.kind, str) and not isinstance(self.kind, PluginKind):
            object.__setattr__(self, "kind", PluginKind(self.kind))

    @property
    def is_strictly_plugin(self) -> bool:
        """True for real plugins, False for library/meta entries."""
        return self.kind == PluginKind.PLUGIN

    @property
    def sort_key(self) -> Tuple[str, str]:
        return (self.name, self.version)


class Catalog:
    """Immutable name -> descriptor mapping for one invocation.

    When two descriptors share a name the first one wins and the rest are
    dropped with a warning.
    """

    def __init__(self, descriptors: Iterable[PluginDescriptor] = ()):
        plugins: Dict[str, PluginDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in plugins:
                logger.warning(
                    f"Duplicate plugin '{descriptor.name}' "
                    f"(version {descriptor.version or '?'}) ignored, "
                    f"keeping version {plugins[descriptor.name].version or '?'}"
                )
                continue
            plugins[descriptor.name] = descriptor
        self._plugins = plugins

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[PluginDescriptor]:
        return iter(self.descriptors())

    def __len__(self) -> int:
        return len(self._plugins)

    @property
    def names(self) -> frozenset:
        return frozenset(self._plugins)

    def get(self, name: str) -> Optional[PluginDescriptor]:
        return self._plugins.get(name)

    def descriptors(self) -> List[PluginDescriptor]:
        """All descriptors, sorted by (name, version)."""
        return sorted(self._plugins.values(), key=lambda d: d.sort_key)

    def dependencies_of(self, name: str) -> Tuple[str, ...]:
        """Direct dependencies of a plugin; empty for unknown names."""
        descriptor = self._plugins.get(name)
        return descriptor.dependencies if descriptor else ()

    def missing(self, names: Iterable[str]) -> List[str]:
        """Names not present in the catalog, sorted."""
        return sorted({n for n in names if n not in self._plugins})

"""Dependency resolution over the plugin catalog.

Forward edges go from a plugin to the plugins it lists as dependencies.
All traversals are iterative and keep a visited set, so cyclic graphs
terminate. Names missing from the catalog are carried through as opaque
leaves; flagging them is the validator's job.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Set

from .models import Catalog


def _traverse(seeds: Iterable[str], edges, include_roots: bool) -> Set[str]:
    seeds = set(seeds)
    visited: Set[str] = set()
    queue = deque()
    for seed in seeds:
        queue.extend(edges(seed))
    while queue:
        name = queue.popleft()
        if name in visited:
            continue
        visited.add(name)
        queue.extend(edges(name))
    if include_roots:
        visited |= seeds
    return visited


def expand_requires(
    names: Iterable[str],
    catalog: Catalog,
    include_roots: bool = True,
) -> Set[str]:
    """Transitive closure of `names` over forward dependency edges.

    With include_roots=False a seed only appears in the result when some
    other seed (or itself, through a cycle) requires it.
    """
    return _traverse(names, catalog.dependencies_of, include_roots)


def dependencies(enabled: Iterable[str], catalog: Catalog) -> Set[str]:
    """The implicit set: enabled plugins plus everything they require."""
    return expand_requires(enabled, catalog, include_roots=True)


def _dependents_index(catalog: Catalog) -> Dict[str, Set[str]]:
    index: Dict[str, Set[str]] = {}
    for descriptor in catalog.descriptors():
        for dep in descriptor.dependencies:
            index.setdefault(dep, set()).add(descriptor.name)
    return index


def expand_dependents(names: Iterable[str], catalog: Catalog) -> Set[str]:
    """`names` plus every catalog plugin that requires one of them, transitively.

    These are the plugins that cannot stay enabled once `names` go away.
    """
    index = _dependents_index(catalog)
    return _traverse(names, lambda n: index.get(n, ()), include_roots=True)


def orphaned(
    enabled: Iterable[str],
    removed: Iterable[str],
    catalog: Catalog,
) -> Set[str]:
    """Plugins that drop out of the implicit set when `removed` are disabled.

    A plugin is orphaned only if no surviving enabled plugin still requires
    it, even transitively.
    """
    enabled = set(enabled)
    before = dependencies(enabled, catalog)
    after = dependencies(enabled - expand_dependents(removed, catalog), catalog)
    return before - after


def strictly_plugins(names: Iterable[str], catalog: Catalog) -> List[str]:
    """Sorted subset of `names` that are real plugins in the catalog."""
    result = []
    for name in names:
        descriptor = catalog.get(name)
        if descriptor is not None and descriptor.is_strictly_plugin:
            result.append(name)
    return sorted(set(result))

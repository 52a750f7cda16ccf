"""Validation of a candidate enabled set against the catalog."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Set

from .models import Catalog
from .resolver import expand_requires


class Reason(str, Enum):
    MISSING_PLUGIN = "missing_plugin"
    MISSING_DEPENDENCY = "missing_dependency"


@dataclass(frozen=True, order=True)
class Invalid:
    """One problem found in the closure of a candidate set.

    For MISSING_DEPENDENCY, `plugin` needs `dependency`, which is absent.
    """
    plugin: str
    reason: Reason
    dependency: str = ""

    def describe(self) -> str:
        if self.reason == Reason.MISSING_DEPENDENCY:
            return f"{self.plugin}: missing dependency {self.dependency}"
        return f"{self.plugin}: plugin not found"


def validate(names: Iterable[str], catalog: Catalog) -> Set[Invalid]:
    """Check every plugin in the transitive closure of `names`.

    Returns an empty set when everything resolves.
    """
    problems: Set[Invalid] = set()
    for name in expand_requires(names, catalog):
        descriptor = catalog.get(name)
        if descriptor is None:
            problems.add(Invalid(name, Reason.MISSING_PLUGIN))
            continue
        for dep in descriptor.dependencies:
            if dep not in catalog:
                problems.add(Invalid(name, Reason.MISSING_DEPENDENCY, dep))
    return problems


def format_invalid(problems: Iterable[Invalid]) -> str:
    """Human readable report, grouped by plugin."""
    lines: List[str] = ["Failed to enable some plugins:"]
    current = None
    for problem in sorted(problems):
        if problem.plugin != current:
            current = problem.plugin
            lines.append(f"    {current}:")
        if problem.reason == Reason.MISSING_DEPENDENCY:
            lines.append(f"        Dependency is missing or invalid: {problem.dependency}")
        else:
            lines.append("        Plugin is missing or invalid")
    return "\n".join(lines)

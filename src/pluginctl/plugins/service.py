"""Plugin operations: list, enable, disable, set, sync.

Each operation reads the catalog and the enabled-plugins file once,
validates before it writes, writes at most once, and only then talks to
the node. Results are plain data; rendering is up to the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ..node.client import NodeClient
from .discovery import load_catalog
from .errors import (
    InvalidArguments,
    RemoteOperationFailed,
    RemoteUnreachable,
    UnknownPlugins,
    ValidationFailed,
)
from .models import Catalog, PluginDescriptor
from .reconcile import ApplyReport, apply_change
from .resolver import dependencies, expand_dependents, orphaned, strictly_plugins
from .store import read_enabled, write_enabled
from .validator import validate

logger = logging.getLogger(__name__)


class Verbosity(str, Enum):
    NORMAL = "normal"
    VERBOSE = "verbose"
    MINIMAL = "minimal"


def select_verbosity(verbose: bool = False, minimal: bool = False) -> Verbosity:
    if verbose and minimal:
        raise InvalidArguments("Cannot specify -m and -v together")
    if verbose:
        return Verbosity.VERBOSE
    if minimal:
        return Verbosity.MINIMAL
    return Verbosity.NORMAL


@dataclass
class PluginEntry:
    """One row of `list` output."""
    descriptor: PluginDescriptor
    explicit: bool = False
    implicit: bool = False
    running: bool = False
    running_version: Optional[str] = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def enabled_glyph(self) -> str:
        if self.explicit:
            return "E"
        if self.implicit:
            return "e"
        return " "

    @property
    def running_glyph(self) -> str:
        return "*" if self.running else " "

    @property
    def pending_upgrade(self) -> bool:
        return (
            self.running_version is not None
            and self.running_version != self.descriptor.version
        )

    @property
    def display_version(self) -> str:
        if self.pending_upgrade:
            return f"{self.running_version} (pending upgrade to {self.descriptor.version})"
        return self.descriptor.version


@dataclass
class PluginListing:
    entries: List[PluginEntry]
    node: str
    status_shown: bool
    verbosity: Verbosity = Verbosity.NORMAL
    warnings: List[str] = field(default_factory=list)


@dataclass
class ChangeResult:
    """Outcome of enable/disable/set/sync.

    `changed` lists the strict plugins reported back to the user: newly
    enabled for enable/set, dropped for disable.
    """
    action: str
    enabled: List[str]
    implicit: List[str]
    previous_implicit: List[str]
    changed: List[str] = field(default_factory=list)
    unchanged: bool = False
    warnings: List[str] = field(default_factory=list)
    application: Optional[ApplyReport] = None


class PluginService:
    """Plugin operations against one plugins directory, enabled-plugins
    file and node.

    The catalog and the enabled set are loaded lazily, on the first
    operation that needs them, and never refreshed afterwards.
    """

    def __init__(
        self,
        plugins_dir: Path,
        enabled_plugins_file: Path,
        client: NodeClient,
        catalog: Optional[Catalog] = None,
    ):
        self.plugins_dir = Path(plugins_dir)
        self.enabled_plugins_file = Path(enabled_plugins_file)
        self.client = client
        self._catalog = catalog
        self._enabled: Optional[Set[str]] = None

    @classmethod
    def from_settings(cls, settings, client: Optional[NodeClient] = None) -> "PluginService":
        if client is None:
            client = NodeClient(settings.node_url, settings.token, settings.timeout_s)
        return cls(Path(settings.plugins_dir), Path(settings.enabled_plugins_file), client)

    # --- State ---

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = load_catalog(self.plugins_dir)
        return self._catalog

    @property
    def enabled(self) -> Set[str]:
        if self._enabled is None:
            self._enabled = read_enabled(self.enabled_plugins_file)
        return set(self._enabled)

    @property
    def implicit(self) -> Set[str]:
        return dependencies(self.enabled, self.catalog)

    def _warnings(self) -> List[str]:
        missing = self.catalog.missing(self.enabled)
        if missing:
            return ["Plugins currently enabled but missing: " + ", ".join(missing)]
        return []

    def _check_known(self, names: Set[str]) -> None:
        missing = self.catalog.missing(names)
        if missing:
            raise UnknownPlugins(missing)

    def _check_valid(self, names: Set[str]) -> None:
        problems = validate(names, self.catalog)
        if problems:
            raise ValidationFailed(problems)

    def _write(self, names: Set[str]) -> Set[str]:
        """Persist `names` and return their implicit set."""
        write_enabled(self.enabled_plugins_file, names)
        self._enabled = set(names)
        return dependencies(names, self.catalog)

    def _apply(
        self,
        result: ChangeResult,
        old: Set[str],
        new: Set[str],
        offline: bool,
        online: bool,
    ) -> ChangeResult:
        try:
            result.application = apply_change(
                old,
                new,
                client=self.client,
                enabled_plugins_file=str(self.enabled_plugins_file),
                catalog=self.catalog,
                offline=offline,
                online=online,
            )
        except (RemoteUnreachable, RemoteOperationFailed) as e:
            e.result = result
            raise
        return result

    # --- Query ---

    def list_plugins(
        self,
        pattern: str = ".*",
        only_enabled: bool = False,
        only_enabled_or_implicit: bool = False,
        verbose: bool = False,
        minimal: bool = False,
    ) -> PluginListing:
        """Catalog entries matching `pattern`, with enabled/running status.

        An unreachable node only hides the running status.
        """
        verbosity = select_verbosity(verbose, minimal)
        try:
            regex = re.compile(pattern or ".*")
        except re.error as e:
            raise InvalidArguments(f"Invalid pattern {pattern!r}: {e}")

        enabled = self.enabled
        implicitly = self.implicit - enabled

        running = {}
        status_shown = False
        active = self.client.active_plugins()
        if active is not None:
            versions = self.client.running_versions()
            if versions is not None:
                running = {name: versions[name] for name in active if name in versions}
                status_shown = True

        entries = []
        for descriptor in self.catalog.descriptors():
            name = descriptor.name
            if not regex.search(name):
                continue
            if only_enabled and name not in enabled:
                continue
            if only_enabled_or_implicit and name not in enabled and name not in implicitly:
                continue
            if not descriptor.is_strictly_plugin:
                continue
            entries.append(
                PluginEntry(
                    descriptor=descriptor,
                    explicit=name in enabled,
                    implicit=name in implicitly,
                    running=name in running,
                    running_version=running.get(name),
                )
            )

        return PluginListing(
            entries=entries,
            node=self.client.node_url,
            status_shown=status_shown,
            verbosity=verbosity,
            warnings=self._warnings(),
        )

    # --- Changes ---

    def enable(
        self,
        names: Iterable[str],
        offline: bool = False,
        online: bool = False,
    ) -> ChangeResult:
        """Add `names` to the enabled set."""
        requested = set(names)
        if not requested:
            raise InvalidArguments("Not enough arguments for 'enable'")
        self._check_known(requested)

        enabled = self.enabled
        old_implicit = self.implicit
        new_enabled = enabled | requested
        self._check_valid(new_enabled)

        warnings = self._warnings()
        new_implicit = self._write(new_enabled)
        result = ChangeResult(
            action="enable",
            enabled=sorted(new_enabled),
            implicit=sorted(new_implicit),
            previous_implicit=sorted(old_implicit),
            changed=strictly_plugins(new_implicit - old_implicit, self.catalog),
            unchanged=not strictly_plugins(new_enabled - old_implicit, self.catalog),
            warnings=warnings,
        )
        return self._apply(result, old_implicit, new_implicit, offline, online)

    def disable(
        self,
        names: Iterable[str],
        offline: bool = False,
        online: bool = False,
    ) -> ChangeResult:
        """Remove `names`, and every plugin that requires them, from the enabled set.

        Unknown names only produce a warning.
        """
        requested = set(names)
        if not requested:
            raise InvalidArguments("Not enough arguments for 'disable'")

        warnings = self._warnings()
        missing = self.catalog.missing(requested)
        if missing:
            warnings.append("The following plugins could not be found: " + ", ".join(missing))

        enabled = self.enabled
        old_implicit = self.implicit
        known = requested - set(missing)
        new_enabled = enabled - expand_dependents(known, self.catalog)
        dropped = orphaned(enabled, known, self.catalog)

        new_implicit = self._write(new_enabled)
        result = ChangeResult(
            action="disable",
            enabled=sorted(new_enabled),
            implicit=sorted(new_implicit),
            previous_implicit=sorted(old_implicit),
            changed=strictly_plugins(dropped, self.catalog),
            unchanged=len(new_enabled) == len(enabled),
            warnings=warnings,
        )
        return self._apply(result, old_implicit, new_implicit, offline, online)

    def set_plugins(
        self,
        names: Iterable[str],
        offline: bool = False,
        online: bool = False,
    ) -> ChangeResult:
        """Replace the enabled set with exactly `names`. Empty disables everything."""
        requested = set(names)
        self._check_known(requested)
        self._check_valid(requested)

        enabled = self.enabled
        old_implicit = self.implicit
        warnings = self._warnings()
        new_implicit = self._write(requested)
        result = ChangeResult(
            action="set",
            enabled=sorted(requested),
            implicit=sorted(new_implicit),
            previous_implicit=sorted(old_implicit),
            changed=strictly_plugins(new_implicit, self.catalog),
            unchanged=requested == enabled,
            warnings=warnings,
        )
        return self._apply(result, old_implicit, new_implicit, offline, online)

    def sync(self) -> ChangeResult:
        """Push the persisted configuration to the node.

        The enabled set is not modified. The node must be reachable.
        """
        implicit = self.implicit
        result = ChangeResult(
            action="sync",
            enabled=sorted(self.enabled),
            implicit=sorted(implicit),
            previous_implicit=[],
            unchanged=True,
            warnings=self._warnings(),
        )
        # A failed query leaves the diff against nothing; the ensure call
        # below reports the real failure.
        active = set(self.client.active_plugins() or ())
        result.previous_implicit = sorted(active)
        return self._apply(result, active, implicit, offline=False, online=True)

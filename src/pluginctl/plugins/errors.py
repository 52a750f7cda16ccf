"""Error types raised by plugin operations.

Everything derives from PluginError so the CLI can catch one type and
map it to an exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Optional

if TYPE_CHECKING:
    from .validator import Invalid


class PluginError(Exception):
    """Base error for plugin operations."""
    pass


class InvalidArguments(PluginError):
    """Bad input from the caller; raised before any state is touched."""
    pass


class ConfigError(PluginError):
    """Settings could not be loaded from config.json or the environment."""
    pass


class CatalogError(PluginError):
    """The plugins directory could not be scanned."""
    pass


class UnknownPlugins(PluginError):
    """Requested plugin names are not in the catalog."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = sorted(set(names))
        super().__init__(
            "The following plugins could not be found: " + ", ".join(self.names)
        )


class ValidationFailed(PluginError):
    """The dependency closure of the requested set does not resolve."""

    def __init__(self, problems: Iterable["Invalid"]):
        self.problems: List["Invalid"] = sorted(problems)
        super().__init__(
            "Invalid plugin configuration:\n"
            + "\n".join(f"  {p.describe()}" for p in self.problems)
        )


class PersistenceFailure(PluginError):
    """The enabled-plugins file could not be read or written."""

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access enabled plugins file {path}: {reason}")


class RemoteUnreachable(PluginError):
    """The node could not be contacted and an online change was demanded.

    `result` holds the already-persisted change, if any.
    """

    def __init__(self, node: str, result: Optional[Any] = None):
        self.node = node
        self.result = result
        super().__init__(f"Could not contact node {node}")


class RemoteOperationFailed(PluginError):
    """The node answered but refused or failed the request."""

    def __init__(self, reason: str, result: Optional[Any] = None):
        self.reason = reason
        self.result = result
        super().__init__(f"Node failed to apply plugin configuration: {reason}")

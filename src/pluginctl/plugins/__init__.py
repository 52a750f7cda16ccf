"""Plugin management for a broker node.

- models      catalog of plugins found on disk
- resolver    dependency closures (forward and reverse)
- validator   missing plugins / dependencies in a candidate set
- reconcile   start/stop diff and how it reaches the node
- service     list / enable / disable / set / sync

Admin commands:
- pluginctl list [pattern]
- pluginctl enable <plugin>...
- pluginctl disable <plugin>...
- pluginctl set [plugin]...
- pluginctl sync
"""

from .errors import (
    CatalogError,
    ConfigError,
    InvalidArguments,
    PersistenceFailure,
    PluginError,
    RemoteOperationFailed,
    RemoteUnreachable,
    UnknownPlugins,
    ValidationFailed,
)
from .models import Catalog, PluginDescriptor, PluginKind
from .reconcile import ApplyReport, ApplyStatus, ReconciliationDiff, apply_change
from .resolver import dependencies, expand_dependents, expand_requires, strictly_plugins
from .service import ChangeResult, PluginEntry, PluginListing, PluginService, Verbosity
from .validator import Invalid, Reason, validate

__all__ = [
    "ApplyReport",
    "ApplyStatus",
    "Catalog",
    "CatalogError",
    "ChangeResult",
    "ConfigError",
    "Invalid",
    "InvalidArguments",
    "PersistenceFailure",
    "PluginDescriptor",
    "PluginEntry",
    "PluginError",
    "PluginKind",
    "PluginListing",
    "PluginService",
    "Reason",
    "ReconciliationDiff",
    "RemoteOperationFailed",
    "RemoteUnreachable",
    "UnknownPlugins",
    "ValidationFailed",
    "Verbosity",
    "apply_change",
    "dependencies",
    "expand_dependents",
    "expand_requires",
    "strictly_plugins",
    "validate",
]

"""pluginctl - manage the plugins enabled on a running broker node.

Resolves plugin dependencies, validates the requested set against the
on-disk catalog, persists the enabled-plugins file and asks the live node
to start/stop whatever changed.
"""

__version__ = "0.1.0"

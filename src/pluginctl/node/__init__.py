"""Remote side: the plugin API of a running broker node."""

from .client import Applied, ApplyResult, NodeClient, OperationFailed, Unreachable

__all__ = [
    "Applied",
    "ApplyResult",
    "NodeClient",
    "OperationFailed",
    "Unreachable",
]

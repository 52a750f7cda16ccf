"""Reconciliation of the implicit plugin set with a running node.

Decides, from the offline/online flags, whether a change is only recorded
for the next restart or pushed to the node now, and turns the node's
answer into a report (or a failure).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, FrozenSet, List

from ..node.client import Applied, NodeClient, OperationFailed, Unreachable
from .errors import RemoteOperationFailed, RemoteUnreachable
from .models import Catalog
from .resolver import strictly_plugins

logger = logging.getLogger(__name__)


class ApplyStatus(str, Enum):
    UNCHANGED = "unchanged"          # offline, old and new sets are equal
    DEFERRED = "deferred"            # offline, takes effect at restart
    NOTHING_TO_DO = "nothing_to_do"  # node reached, nothing started or stopped
    APPLIED = "applied"              # node started and/or stopped plugins
    UNREACHABLE = "unreachable"      # node down, takes effect at restart


@dataclass(frozen=True)
class ReconciliationDiff:
    to_start: FrozenSet[str] = field(default_factory=frozenset)
    to_stop: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def between(cls, old: AbstractSet[str], new: AbstractSet[str]) -> "ReconciliationDiff":
        return cls(frozenset(new) - frozenset(old), frozenset(old) - frozenset(new))

    @property
    def is_empty(self) -> bool:
        return not self.to_start and not self.to_stop


@dataclass
class ApplyReport:
    """What happened when a change was handed to the node."""
    status: ApplyStatus
    node: str = ""
    diff: ReconciliationDiff = field(default_factory=ReconciliationDiff)
    started: List[str] = field(default_factory=list)   # strict plugins only
    stopped: List[str] = field(default_factory=list)   # strict plugins only


def apply_change(
    old: AbstractSet[str],
    new: AbstractSet[str],
    *,
    client: NodeClient,
    enabled_plugins_file: str,
    catalog: Catalog,
    offline: bool = False,
    online: bool = False,
) -> ApplyReport:
    """Apply the move from implicit set `old` to `new`.

    offline never contacts the node. online turns an unreachable node into
    a failure. With neither flag an unreachable node defers the change to
    the next restart. Any other node error is always a failure.
    """
    diff = ReconciliationDiff.between(old, new)
    node = client.node_url

    if offline:
        if diff.is_empty:
            return ApplyReport(ApplyStatus.UNCHANGED, node, diff)
        logger.info("Offline change; not contacting the node")
        return ApplyReport(ApplyStatus.DEFERRED, node, diff)

    logger.info(
        f"Applying plugin configuration to {node}: "
        f"{len(diff.to_start)} to start, {len(diff.to_stop)} to stop"
    )
    outcome = client.apply_change(enabled_plugins_file)

    if isinstance(outcome, Applied):
        started = strictly_plugins(outcome.started, catalog)
        stopped = strictly_plugins(outcome.stopped, catalog)
        if not outcome.started and not outcome.stopped:
            return ApplyReport(ApplyStatus.NOTHING_TO_DO, node, diff)
        return ApplyReport(ApplyStatus.APPLIED, node, diff, started, stopped)

    if isinstance(outcome, Unreachable):
        if online:
            raise RemoteUnreachable(outcome.node)
        logger.warning(f"Could not contact node {outcome.node}; changes deferred to restart")
        return ApplyReport(ApplyStatus.UNREACHABLE, node, diff)

    if isinstance(outcome, OperationFailed):
        raise RemoteOperationFailed(outcome.reason)

    raise RemoteOperationFailed(f"Unexpected result from node: {outcome!r}")

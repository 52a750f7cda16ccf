"""Node Client for pluginctl.

Talks to the plugin endpoints of a running broker node. Every call maps
the transport outcome onto one of three shapes: the node could not be
reached, the node answered with an error, or the node answered with a
usable payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Union

import requests

from ..urls import api_url, root_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Applied:
    """The node reconciled its plugins against the enabled-plugins file."""
    started: FrozenSet[str] = field(default_factory=frozenset)
    stopped: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Unreachable:
    """The node could not be contacted."""
    node: str


@dataclass(frozen=True)
class OperationFailed:
    """The node was reached but returned an error."""
    reason: str


ApplyResult = Union[Applied, Unreachable, OperationFailed]


class _NodeDown(Exception):
    pass


class _NodeError(Exception):
    pass


class NodeClient:
    """Client for the plugin API of one broker node."""

    def __init__(self, node_url: str, token: str = "", timeout_s: float = 30.0):
        self.node_url = root_url(node_url)
        self.timeout_s = timeout_s
        self._session = requests.Session()
        self._session.headers["Content-Type"] = "application/json"
        self._session.headers["Accept"] = "application/json"
        if token:
            if not token.startswith("Bearer "):
                token = f"Bearer {token}"
            self._session.headers["Authorization"] = token

    def __repr__(self) -> str:
        return f"NodeClient({self.node_url!r})"

    def _request(self, method: str, path: str, **kwargs) -> dict:
        """Make an API request.

        Raises _NodeDown when the node cannot be contacted and _NodeError
        for anything the node itself reported.
        """
        url = api_url(self.node_url, path)
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(method, url, timeout=self.timeout_s, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.warning(f"Cannot connect to node at {self.node_url}: {e}")
            raise _NodeDown(str(e))
        except requests.exceptions.RequestException as e:
            raise _NodeError(f"Request failed: {e}")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            try:
                body = response.json()
                detail = body.get("detail") or body.get("error") or str(e)
            except Exception:
                detail = response.text or str(e)
            raise _NodeError(f"API error: {detail}")

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise _NodeError(f"Invalid JSON response: {e}")
        if not isinstance(data, dict):
            raise _NodeError("Invalid response: expected an object")
        return data

    # --- Queries ---

    def active_plugins(self) -> Optional[FrozenSet[str]]:
        """Plugins currently running on the node, or None if unreachable."""
        try:
            data = self._request("GET", "/plugins/active")
        except _NodeDown:
            return None
        except _NodeError as e:
            logger.warning(f"Listing active plugins failed: {e}")
            return None
        plugins = data.get("plugins", [])
        if not isinstance(plugins, list):
            return None
        return frozenset(str(p) for p in plugins)

    def running_versions(self) -> Optional[Dict[str, str]]:
        """Version of each running application, or None if unreachable."""
        try:
            data = self._request("GET", "/plugins/versions")
        except _NodeDown:
            return None
        except _NodeError as e:
            logger.warning(f"Listing running versions failed: {e}")
            return None
        versions = data.get("versions", {})
        if not isinstance(versions, dict):
            return None
        return {str(k): str(v) for k, v in versions.items()}

    # --- Reconciliation ---

    def apply_change(self, enabled_plugins_file: str) -> ApplyResult:
        """Ask the node to start/stop plugins to match the enabled-plugins file."""
        try:
            data = self._request(
                "POST", "/plugins/ensure", json={"file": str(enabled_plugins_file)}
            )
        except _NodeDown:
            return Unreachable(self.node_url)
        except _NodeError as e:
            return OperationFailed(str(e))

        started = data.get("started", [])
        stopped = data.get("stopped", [])
        if not isinstance(started, list) or not isinstance(stopped, list):
            return OperationFailed(f"Unexpected response: {data!r}")
        logger.info(
            f"Node {self.node_url} started {len(started)} and stopped {len(stopped)} application(s)"
        )
        return Applied(
            frozenset(str(p) for p in started),
            frozenset(str(p) for p in stopped),
        )

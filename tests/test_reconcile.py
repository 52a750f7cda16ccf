"""Tests for change application against the node."""

import pytest
from unittest.mock import MagicMock

from pluginctl.node.client import Applied, NodeClient, OperationFailed, Unreachable
from pluginctl.plugins.errors import RemoteOperationFailed, RemoteUnreachable
from pluginctl.plugins.models import Catalog, PluginDescriptor, PluginKind
from pluginctl.plugins.reconcile import (
    ApplyStatus,
    ReconciliationDiff,
    apply_change,
)

NODE = "http://localhost:15672"


def make_client(outcome=None):
    client = MagicMock(spec=NodeClient)
    client.node_url = NODE
    client.apply_change.return_value = outcome
    return client


def make_catalog():
    return Catalog([
        PluginDescriptor(name="shovel", dependencies=("amqp_client",)),
        PluginDescriptor(name="amqp_client", kind=PluginKind.LIBRARY),
        PluginDescriptor(name="mqtt"),
    ])


def run(old, new, client, **flags):
    return apply_change(
        set(old),
        set(new),
        client=client,
        enabled_plugins_file="/tmp/enabled_plugins",
        catalog=make_catalog(),
        **flags,
    )


class TestReconciliationDiff:
    """Tests for ReconciliationDiff."""

    def test_between(self):
        """Test start/stop are the two set differences."""
        diff = ReconciliationDiff.between({"a", "b"}, {"b", "c"})
        assert diff.to_start == frozenset({"c"})
        assert diff.to_stop == frozenset({"a"})
        assert diff.is_empty is False

    def test_empty(self):
        """Test equal sets give an empty diff."""
        assert ReconciliationDiff.between({"a"}, {"a"}).is_empty is True


class TestOffline:
    """Tests for offline mode."""

    def test_offline_unchanged(self):
        """Test offline with no change does nothing and never calls the node."""
        client = make_client()
        report = run({"mqtt"}, {"mqtt"}, client, offline=True)

        assert report.status == ApplyStatus.UNCHANGED
        client.apply_change.assert_not_called()

    def test_offline_deferred(self):
        """Test offline with a change is deferred to restart."""
        client = make_client()
        report = run(set(), {"mqtt"}, client, offline=True)

        assert report.status == ApplyStatus.DEFERRED
        assert report.diff.to_start == frozenset({"mqtt"})
        client.apply_change.assert_not_called()

    def test_offline_wins_over_online(self):
        """Test offline takes precedence when both flags are set."""
        client = make_client()
        report = run(set(), {"mqtt"}, client, offline=True, online=True)

        assert report.status == ApplyStatus.DEFERRED
        client.apply_change.assert_not_called()


class TestOnline:
    """Tests for the default and online modes."""

    def test_nothing_to_do(self):
        """Test the node reporting no change."""
        client = make_client(Applied())
        report = run({"mqtt"}, {"mqtt"}, client)

        assert report.status == ApplyStatus.NOTHING_TO_DO
        assert report.started == []
        client.apply_change.assert_called_once_with("/tmp/enabled_plugins")

    def test_applied_counts_strict_plugins(self):
        """Test library applications are not counted as plugins."""
        client = make_client(Applied(
            started=frozenset({"shovel", "amqp_client"}),
            stopped=frozenset({"mqtt"}),
        ))
        report = run({"mqtt"}, {"shovel", "amqp_client"}, client)

        assert report.status == ApplyStatus.APPLIED
        assert report.started == ["shovel"]
        assert report.stopped == ["mqtt"]
        assert report.diff.to_start == frozenset({"shovel", "amqp_client"})
        assert report.diff.to_stop == frozenset({"mqtt"})

    def test_unreachable_default_defers(self):
        """Test an unreachable node in default mode is a soft failure."""
        client = make_client(Unreachable(NODE))
        report = run(set(), {"mqtt"}, client)

        assert report.status == ApplyStatus.UNREACHABLE
        assert report.diff.to_start == frozenset({"mqtt"})

    def test_unreachable_online_fails(self):
        """Test an unreachable node in online mode is a hard failure."""
        client = make_client(Unreachable(NODE))
        with pytest.raises(RemoteUnreachable) as exc_info:
            run(set(), {"mqtt"}, client, online=True)
        assert exc_info.value.node == NODE

    def test_operation_failed(self):
        """Test a node error always fails."""
        client = make_client(OperationFailed("API error: boom"))
        with pytest.raises(RemoteOperationFailed, match="boom"):
            run(set(), {"mqtt"}, client)

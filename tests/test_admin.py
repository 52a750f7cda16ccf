"""Tests for the plugin CLI commands."""

import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from pluginctl.cli import build_parser
from pluginctl.node.client import Applied, NodeClient, Unreachable
from pluginctl.plugins.admin import run_plugin_command
from pluginctl.plugins.models import Catalog, PluginDescriptor
from pluginctl.plugins.service import PluginService
from pluginctl.plugins.store import read_enabled

NODE = "http://localhost:15672"


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make_service(workdir, outcome=None, active=None, versions=None):
    client = MagicMock(spec=NodeClient)
    client.node_url = NODE
    client.apply_change.return_value = outcome if outcome is not None else Applied()
    client.active_plugins.return_value = active
    client.running_versions.return_value = versions
    catalog = Catalog([
        PluginDescriptor(name="mqtt", version="3.5.1", description="MQTT adapter"),
        PluginDescriptor(name="web_mqtt", version="3.5.1", dependencies=("mqtt",)),
    ])
    return PluginService(workdir / "plugins", workdir / "enabled_plugins", client, catalog)


def run(argv, service):
    """Run a command line against `service` and return (exit code, output)."""
    args = build_parser().parse_args(argv)
    console = Console(record=True, width=120)
    with patch("pluginctl.plugins.admin.build_service", return_value=service), \
            patch("pluginctl.plugins.admin.console", console):
        code = run_plugin_command(args)
    return code, console.export_text()


class TestParser:
    """Tests for the argument parser."""

    def test_global_options(self):
        """Test global overrides parse before the subcommand."""
        args = build_parser().parse_args(
            ["-n", "broker:15672", "--plugins-dir", "/p", "enable", "mqtt", "--online"]
        )
        assert args.node == "broker:15672"
        assert args.plugins_dir == "/p"
        assert args.plugins == ["mqtt"]
        assert args.online is True
        assert args.offline is False

    def test_list_defaults(self):
        """Test list without a pattern matches everything."""
        args = build_parser().parse_args(["list"])
        assert args.pattern == ".*"


class TestCommands:
    """Tests for running commands."""

    def test_enable_offline(self, workdir):
        """Test an offline enable reports the plugins and the deferral."""
        service = make_service(workdir)
        code, out = run(["enable", "web_mqtt", "--offline"], service)

        assert code == 0
        assert "The following plugins have been enabled:" in out
        assert "  mqtt" in out
        assert "  web_mqtt" in out
        assert "changes will take effect at broker restart" in out
        service.client.apply_change.assert_not_called()

    def test_enable_applied(self, workdir):
        """Test the node's started count is reported."""
        service = make_service(workdir, Applied(started=frozenset({"mqtt", "web_mqtt"})))
        code, out = run(["enable", "web_mqtt"], service)

        assert code == 0
        assert f"Applying plugin configuration to {NODE}... started 2 plugins." in out

    def test_enable_unknown_exit_code(self, workdir):
        """Test unknown plugins fail with exit code 1."""
        code, out = run(["enable", "ghost"], make_service(workdir))

        assert code == 1
        assert "could not be found: ghost" in out

    def test_enable_without_names(self, workdir):
        """Test missing arguments give exit code 2."""
        code, out = run(["enable"], make_service(workdir))
        assert code == 2

    def test_online_unreachable(self, workdir):
        """Test an online failure after persistence."""
        service = make_service(workdir, Unreachable(NODE))
        code, out = run(["enable", "mqtt", "--online"], service)

        assert code == 1
        assert "The following plugins have been enabled:" in out
        assert "failed." in out
        assert read_enabled(service.enabled_plugins_file) == {"mqtt"}

    def test_default_unreachable_hint(self, workdir):
        """Test the restart hint when the node is down in default mode."""
        code, out = run(["enable", "mqtt"], make_service(workdir, Unreachable(NODE)))

        assert code == 0
        assert "Changes will take effect at broker restart." in out
        assert "--online" in out

    def test_set_empty(self, workdir):
        """Test `set` with no names disables everything."""
        code, out = run(["set", "--offline"], make_service(workdir))

        assert code == 0
        assert "All plugins are now disabled." in out

    def test_disable_unchanged(self, workdir):
        """Test disabling something that is not enabled."""
        code, out = run(["disable", "mqtt", "--offline"], make_service(workdir))

        assert code == 0
        assert "Plugin configuration unchanged." in out

    def test_list(self, workdir):
        """Test the normal list layout."""
        service = make_service(
            workdir,
            active=frozenset({"mqtt"}),
            versions={"mqtt": "3.5.0"},
        )
        code, out = run(["list"], service)

        assert code == 0
        assert f"* = running on {NODE}" in out
        assert "[ *]" in out
        assert "3.5.0 (pending upgrade to 3.5.1)" in out

    def test_list_unreachable(self, workdir):
        """Test the status header when the node is down."""
        code, out = run(["list"], make_service(workdir))

        assert code == 0
        assert f"[failed to contact {NODE} - status not shown]" in out

    def test_list_minimal(self, workdir):
        """Test -m prints names only."""
        code, out = run(["list", "-m", "web"], make_service(workdir))

        assert code == 0
        assert out.split() == ["web_mqtt"]

    def test_list_verbose_and_minimal(self, workdir):
        """Test -v with -m is rejected."""
        code, out = run(["list", "-v", "-m"], make_service(workdir))

        assert code == 2
        assert "Cannot specify -m and -v together" in out

    def test_enable_missing_dependency_report(self, workdir):
        """Test validation problems are printed grouped by plugin."""
        client = MagicMock(spec=NodeClient)
        client.node_url = NODE
        catalog = Catalog([PluginDescriptor(name="web_mqtt", dependencies=("mqtt",))])
        service = PluginService(workdir / "plugins", workdir / "enabled_plugins", client, catalog)
        code, out = run(["enable", "web_mqtt"], service)

        assert code == 1
        assert "Failed to enable some plugins:" in out
        assert "    web_mqtt:" in out
        assert "        Dependency is missing or invalid: mqtt" in out
        assert not service.enabled_plugins_file.exists()

    def test_bad_settings_exit_code(self, workdir):
        """Test an invalid setting is reported instead of raising."""
        args = build_parser().parse_args(["list"])
        console = Console(record=True, width=120)
        env = {"XDG_CONFIG_HOME": str(workdir), "PLUGINCTL_TIMEOUT": "soon"}
        with patch.dict(os.environ, env, clear=True), \
                patch("pluginctl.env.Path.cwd", return_value=workdir), \
                patch("pluginctl.plugins.admin.console", console):
            code = run_plugin_command(args)

        assert code == 1
        assert "Invalid timeout" in console.export_text()

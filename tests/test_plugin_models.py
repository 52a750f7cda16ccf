"""Tests for the plugin models module."""

import logging

import pytest

from pluginctl.plugins.models import Catalog, PluginDescriptor, PluginKind


class TestPluginKind:
    """Tests for PluginKind enum."""

    def test_values(self):
        """Test enum values."""
        assert PluginKind.PLUGIN.value == "plugin"
        assert PluginKind.LIBRARY.value == "library"


class TestPluginDescriptor:
    """Tests for PluginDescriptor."""

    def test_default_values(self):
        """Test default descriptor values."""
        plugin = PluginDescriptor(name="shovel")
        assert plugin.version == ""
        assert plugin.description == ""
        assert plugin.dependencies == ()
        assert plugin.kind == PluginKind.PLUGIN
        assert plugin.is_strictly_plugin is True

    def test_dependencies_normalized_to_tuple(self):
        """Test list dependencies are stored as a tuple."""
        plugin = PluginDescriptor(name="shovel_ui", dependencies=["shovel", "management"])
        assert plugin.dependencies == ("shovel", "management")

    def test_kind_from_string(self):
        """Test kind given as a plain string."""
        plugin = PluginDescriptor(name="amqp_client", kind="library")
        assert plugin.kind == PluginKind.LIBRARY
        assert plugin.is_strictly_plugin is False

    def test_immutable(self):
        """Test descriptors cannot be mutated."""
        plugin = PluginDescriptor(name="shovel")
        with pytest.raises(Exception):
            plugin.name = "other"

    def test_sort_key(self):
        """Test sort key is (name, version)."""
        plugin = PluginDescriptor(name="a", version="2")
        assert plugin.sort_key == ("a", "2")


class TestCatalog:
    """Tests for Catalog."""

    def test_lookup(self):
        """Test membership and lookup by name."""
        catalog = Catalog([
            PluginDescriptor(name="b", dependencies=("a",)),
            PluginDescriptor(name="a"),
        ])
        assert "a" in catalog
        assert "ghost" not in catalog
        assert catalog.get("b").dependencies == ("a",)
        assert catalog.get("ghost") is None
        assert len(catalog) == 2
        assert catalog.names == frozenset({"a", "b"})

    def test_descriptors_sorted(self):
        """Test descriptors are returned sorted by name."""
        catalog = Catalog([
            PluginDescriptor(name="web_stomp"),
            PluginDescriptor(name="federation"),
            PluginDescriptor(name="mqtt"),
        ])
        assert [d.name for d in catalog] == ["federation", "mqtt", "web_stomp"]

    def test_dependencies_of_unknown(self):
        """Test unknown names have no dependencies."""
        catalog = Catalog()
        assert catalog.dependencies_of("ghost") == ()

    def test_missing(self):
        """Test missing names are reported sorted."""
        catalog = Catalog([PluginDescriptor(name="a")])
        assert catalog.missing(["z", "a", "b"]) == ["b", "z"]

    def test_duplicate_first_wins(self, caplog):
        """Test the first descriptor with a given name is kept."""
        with caplog.at_level(logging.WARNING):
            catalog = Catalog([
                PluginDescriptor(name="shovel", version="1.0"),
                PluginDescriptor(name="shovel", version="2.0"),
            ])
        assert len(catalog) == 1
        assert catalog.get("shovel").version == "1.0"
        assert "Duplicate plugin 'shovel'" in caplog.text

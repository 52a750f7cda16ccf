"""Plugin Admin CLI.

Provides commands for managing the plugins of a broker node:
- pluginctl list [pattern]
- pluginctl enable <plugin>...
- pluginctl disable <plugin>...
- pluginctl set [plugin]...
- pluginctl sync
"""

from __future__ import annotations

import argparse
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import Settings
from ..node.client import NodeClient
from .errors import (
    InvalidArguments,
    PluginError,
    RemoteOperationFailed,
    RemoteUnreachable,
    ValidationFailed,
)
from .reconcile import ApplyReport, ApplyStatus
from .service import ChangeResult, PluginListing, PluginService, Verbosity
from .validator import format_invalid

console = Console()


def _plural(items: List[str]) -> str:
    return "" if len(items) == 1 else "s"


def build_service(args: argparse.Namespace) -> PluginService:
    """Settings from disk/environment, overridden by command line options."""
    settings = Settings.load()
    if getattr(args, "node", None):
        settings.node_url = args.node
    if getattr(args, "plugins_dir", None):
        settings.plugins_dir = args.plugins_dir
    if getattr(args, "enabled_plugins_file", None):
        settings.enabled_plugins_file = args.enabled_plugins_file
    client = NodeClient(settings.node_url, settings.token, settings.timeout_s)
    return PluginService.from_settings(settings, client)


# --- Rendering ---

def print_warnings(warnings: List[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
    if warnings:
        console.print()


def print_list(header: str, plugins: List[str]) -> None:
    console.print(header)
    for name in plugins:
        console.print(f"  {escape(name)}", highlight=False)


def print_listing(listing: PluginListing) -> None:
    print_warnings(listing.warnings)

    if listing.verbosity == Verbosity.MINIMAL:
        for entry in listing.entries:
            console.print(escape(entry.name), highlight=False)
        return

    if listing.status_shown:
        status = f"* = running on {escape(listing.node)}"
    else:
        status = f"\\[failed to contact {escape(listing.node)} - status not shown]"
    console.print(" Configured: E = explicitly enabled; e = implicitly enabled")
    console.print(f" | Status:   {status}")
    console.print(" |/")

    if listing.verbosity == Verbosity.VERBOSE:
        for entry in listing.entries:
            glyph = escape(f"[{entry.enabled_glyph}{entry.running_glyph}]")
            console.print(f"{glyph} [cyan]{escape(entry.name)}[/cyan]")
            if entry.display_version:
                console.print(f"     Version:     \t{escape(entry.display_version)}")
            if entry.descriptor.dependencies:
                deps = ", ".join(entry.descriptor.dependencies)
                console.print(f"     Dependencies:\t{escape(deps)}")
            if entry.descriptor.description:
                console.print(f"     Description: \t{escape(entry.descriptor.description)}")
            console.print()
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Status")
    table.add_column("Plugin", style="cyan")
    table.add_column("Version")
    for entry in listing.entries:
        version = entry.display_version
        if entry.pending_upgrade:
            version = f"[yellow]{escape(version)}[/yellow]"
        else:
            version = escape(version)
        table.add_row(
            escape(f"[{entry.enabled_glyph}{entry.running_glyph}]"),
            escape(entry.name),
            version,
        )
    console.print(table)


def print_application(report: ApplyReport) -> None:
    if report.status == ApplyStatus.UNCHANGED:
        return
    if report.status == ApplyStatus.DEFERRED:
        console.print("Offline change; changes will take effect at broker restart.")
        return

    prefix = f"\nApplying plugin configuration to {escape(report.node)}..."
    if report.status == ApplyStatus.NOTHING_TO_DO:
        console.print(f"{prefix} nothing to do.")
    elif report.status == ApplyStatus.APPLIED:
        parts = []
        if report.stopped:
            parts.append(f"stopped {len(report.stopped)} plugin{_plural(report.stopped)}")
        if report.started:
            parts.append(f"started {len(report.started)} plugin{_plural(report.started)}")
        console.print(f"{prefix} {' and '.join(parts) or 'done'}.")
    elif report.status == ApplyStatus.UNREACHABLE:
        console.print(f"{prefix} [red]failed.[/red]")
        console.print(
            f" * Could not contact node {escape(report.node)}.\n"
            "   Changes will take effect at broker restart.\n"
            " * Options: --online  - fail if broker cannot be contacted.\n"
            "            --offline - do not try to contact broker."
        )


def print_change(result: ChangeResult) -> None:
    print_warnings(result.warnings)

    if result.action == "enable":
        if result.unchanged:
            console.print("Plugin configuration unchanged.")
        else:
            print_list("The following plugins have been enabled:", result.changed)
    elif result.action == "disable":
        if result.unchanged:
            console.print("Plugin configuration unchanged.")
        else:
            print_list("The following plugins have been disabled:", result.changed)
    elif result.action == "set":
        if not result.changed:
            console.print("All plugins are now disabled.")
        else:
            print_list("The following plugins are now enabled:", result.changed)

    if result.application is not None:
        print_application(result.application)


def _run(args: argparse.Namespace, operation) -> int:
    try:
        service = build_service(args)
        result = operation(service)
    except (RemoteUnreachable, RemoteOperationFailed) as e:
        if e.result is not None:
            print_change(e.result)
        console.print(f"\nApplying plugin configuration to {escape(service.client.node_url)}... [red]failed.[/red]")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except ValidationFailed as e:
        console.print(escape(format_invalid(e.problems)), highlight=False)
        return 1
    except InvalidArguments as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 2
    except PluginError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    if isinstance(result, PluginListing):
        print_listing(result)
    else:
        print_change(result)
    return 0


# --- Commands ---

def cmd_list(args: argparse.Namespace) -> int:
    """List plugins."""
    return _run(args, lambda service: service.list_plugins(
        pattern=args.pattern,
        only_enabled=args.enabled,
        only_enabled_or_implicit=args.implicitly_enabled,
        verbose=args.verbose,
        minimal=args.minimal,
    ))


def cmd_enable(args: argparse.Namespace) -> int:
    """Enable plugins."""
    return _run(args, lambda service: service.enable(
        args.plugins, offline=args.offline, online=args.online,
    ))


def cmd_disable(args: argparse.Namespace) -> int:
    """Disable plugins."""
    return _run(args, lambda service: service.disable(
        args.plugins, offline=args.offline, online=args.online,
    ))


def cmd_set(args: argparse.Namespace) -> int:
    """Enable exactly the given plugins."""
    return _run(args, lambda service: service.set_plugins(
        args.plugins, offline=args.offline, online=args.online,
    ))


def cmd_sync(args: argparse.Namespace) -> int:
    """Apply the enabled-plugins file to the node."""
    return _run(args, lambda service: service.sync())


def _add_mode_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--offline", action="store_true",
                        help="Do not contact the node; changes take effect at restart")
    parser.add_argument("--online", action="store_true",
                        help="Fail if the node cannot be contacted")


def create_plugin_parser(subparsers: argparse._SubParsersAction) -> None:
    """Add plugin subcommands to the argument parser."""
    # list
    p_list = subparsers.add_parser("list", help="List plugins")
    p_list.add_argument("pattern", nargs="?", default=".*", help="Regular expression on plugin names")
    p_list.add_argument("-v", "--verbose", action="store_true", help="Show all plugin details")
    p_list.add_argument("-m", "--minimal", action="store_true", help="Show plugin names only")
    p_list.add_argument("-e", "--enabled", action="store_true",
                        help="Only explicitly enabled plugins")
    p_list.add_argument("-E", "--implicitly-enabled", action="store_true",
                        help="Only explicitly or implicitly enabled plugins")
    p_list.set_defaults(func=cmd_list)

    # enable
    p_enable = subparsers.add_parser("enable", help="Enable plugins")
    p_enable.add_argument("plugins", nargs="*", help="Plugins to enable")
    _add_mode_flags(p_enable)
    p_enable.set_defaults(func=cmd_enable)

    # disable
    p_disable = subparsers.add_parser("disable", help="Disable plugins and their dependents")
    p_disable.add_argument("plugins", nargs="*", help="Plugins to disable")
    _add_mode_flags(p_disable)
    p_disable.set_defaults(func=cmd_disable)

    # set
    p_set = subparsers.add_parser("set", help="Enable exactly these plugins (none = disable all)")
    p_set.add_argument("plugins", nargs="*", help="Plugins to enable")
    _add_mode_flags(p_set)
    p_set.set_defaults(func=cmd_set)

    # sync
    p_sync = subparsers.add_parser("sync", help="Apply the enabled-plugins file to the node")
    p_sync.set_defaults(func=cmd_sync)


def run_plugin_command(args: argparse.Namespace) -> int:
    """Run a plugin subcommand."""
    if not hasattr(args, "func"):
        # No subcommand given, show list by default
        args.pattern = ".*"
        args.verbose = args.minimal = args.enabled = args.implicitly_enabled = False
        return cmd_list(args)

    return args.func(args)

"""pluginctl CLI - manage the plugins of a broker node.

Usage:
    pluginctl list [pattern] [-v|-m] [-e|-E]
    pluginctl enable <plugin>... [--offline|--online]
    pluginctl disable <plugin>... [--offline|--online]
    pluginctl set [plugin]... [--offline|--online]
    pluginctl sync

Global options select the node and the files to work on; defaults come
from ~/.config/pluginctl/config.json and PLUGINCTL_* environment variables.
"""

from __future__ import annotations

import argparse
import logging
import os

from . import __version__
from .plugins.admin import create_plugin_parser, run_plugin_command


def _configure_logging(debug: bool) -> None:
    level = os.environ.get("PLUGINCTL_LOG_LEVEL")
    if debug:
        level = "DEBUG"
    if not level:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pluginctl",
        description="Enable, disable and list the plugins of a broker node.",
    )
    parser.add_argument("--version", action="version", version=f"pluginctl {__version__}")
    parser.add_argument("-n", "--node", help="Node URL override (e.g. http://localhost:15672)")
    parser.add_argument("--plugins-dir", help="Directory holding the plugin manifests")
    parser.add_argument("--enabled-plugins-file", help="Path of the enabled-plugins file")
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr")

    sub = parser.add_subparsers(dest="subcmd")
    create_plugin_parser(sub)
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    _configure_logging(args.debug)
    raise SystemExit(run_plugin_command(args))


if __name__ == "__main__":
    main()

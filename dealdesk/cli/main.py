"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .. import i18n
from ..i18n import _
from ..log import configure_logging
from ..settings import AppSettings, load_app_settings
from .commands import COMMANDS

LOCALE_DIR = Path(__file__).resolve().parent.parent / "locale"


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(prog="dealdesk", description=_("DealDesk CLI"))
    parser.add_argument("--settings", help=_("path to JSON/TOML settings"))
    parser.add_argument("--verbose", action="store_true", help=_("log debug output"))
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    i18n.install(LOCALE_DIR)
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    settings = AppSettings()
    if args.settings:
        settings = load_app_settings(args.settings)
    args.app_settings = settings
    return args.func(args) or 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

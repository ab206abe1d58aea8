"""
subjectlens CLI.

Usage:
    subjectlens identity show <case.yaml> [--findings findings.yaml]
    subjectlens discover <case.yaml> --catalog catalog.yaml
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from subjectlens import __version__
from subjectlens.cli.discover import handle_discover_command, register_discover_parser
from subjectlens.cli.identity import handle_identity_command, register_identity_parser
from subjectlens.config import get_settings
from subjectlens.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subjectlens",
        description="Data subject identity resolution and system discovery",
    )
    parser.add_argument("--version", action="version", version=f"subjectlens {__version__}")
    parser.add_argument("--log-level", dest="log_level", help="Log level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    register_identity_parser(subparsers)
    register_discover_parser(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    configure_logging(args.log_level or settings.log_level)

    if args.command == "identity":
        sys.exit(handle_identity_command(args, default_format=settings.output_format))

    if args.command == "discover":
        sys.exit(handle_discover_command(args, default_format=settings.output_format))

    parser.print_help()
    sys.exit(2)


if __name__ == "__main__":
    main()

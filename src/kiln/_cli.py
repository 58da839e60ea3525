"""Kiln CLI — kiln build / kiln dev.

Entry point for the ``kiln`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the kiln CLI."""
    parser = argparse.ArgumentParser(
        prog="kiln",
        description="Static site builder with incremental rebuilds and live reload.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # kiln dev
    dev_parser = subparsers.add_parser(
        "dev",
        help="Build, watch and serve the site with live reload",
    )
    dev_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    dev_parser.add_argument("--host", default=None, help="Bind address (default: devServer.host)")
    dev_parser.add_argument(
        "--port", type=int, default=None, help="Bind port (default: devServer.port)",
    )

    # kiln build
    build_parser = subparsers.add_parser(
        "build",
        help="Build the site into the output directory",
    )
    build_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    build_parser.add_argument(
        "--base-url", default=None, help="Override baseUrl for links and the feed",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from kiln import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from kiln._errors import ConfigError
    from kiln.app import build, dev

    try:
        if args.command == "dev":
            dev(root=args.root, host=args.host, port=args.port)
        elif args.command == "build":
            result = build(root=args.root, base_url=args.base_url)
            if not result.ok:
                sys.exit(1)
    except ConfigError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
pkghist CLI - trace package versions from pacman's logfile.

Usage:
    pkghist query [options] [filter...]   Show package histories (alias: q)
    pkghist serve [--transport T]         Start MCP server for AI agents

Query examples:
    pkghist q                             # installed packages, full history
    pkghist q '^linux$' -L 3              # last three versions of linux
    pkghist q -x '^lib' '^python'         # everything except lib* and python*
    pkghist q -R                          # packages that are currently removed
    pkghist q --last 10 --no-details      # ten most recently touched packages
    pkghist q -a "2019-10-01 00:00" -o json
"""

from __future__ import annotations

import argparse
import logging
import sys

from pkghist import __version__
from pkghist.commands import cmd_query, cmd_serve
from pkghist.core import DEFAULT_LOGFILE, OUTPUT_FORMATS

__all__ = [
    "build_parser",
    "level_from_verbosity",
    "main",
]


def level_from_verbosity(verbosity: int, quiet: bool = False) -> int:
    """Map -v count (and -q) to a logging level."""
    if quiet:
        return logging.ERROR
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def _setup_logging(level: int = logging.WARNING) -> None:
    """Configure the pkghist logger with stderr handler."""
    pkghist_logger = logging.getLogger("pkghist")
    pkghist_logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    pkghist_logger.addHandler(handler)
    pkghist_logger.setLevel(level)


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Please provide a positive number")
    if n <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkghist",
        description="pkghist - Trace package versions from pacman's logfile",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Global flags
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More log output (repeat for debug)"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="YAML config file (default: $PKGHIST_CONFIG or ~/.config/pkghist/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # query (with alias 'q')
    p_query = subparsers.add_parser(
        "query", aliases=["q"], help="Show package histories from the logfile"
    )
    p_query.add_argument(
        "filters",
        nargs="*",
        metavar="filter",
        help="Regular expressions selecting packages (e.g. '^linux$' only matches 'linux')",
    )
    p_query.add_argument(
        "-l", "--logfile", metavar="FILE", help=f"Specify a logfile (default: {DEFAULT_LOGFILE})"
    )
    p_query.add_argument(
        "-o",
        "--output-format",
        type=str.lower,
        choices=OUTPUT_FORMATS,
        help="Select the output format (default: plain)",
    )
    state = p_query.add_mutually_exclusive_group()
    state.add_argument(
        "-r",
        "--with-removed",
        action="store_true",
        help="Include packages that are currently uninstalled",
    )
    state.add_argument(
        "-R",
        "--removed-only",
        action="store_true",
        help="Only output packages that are currently uninstalled",
    )
    p_query.add_argument(
        "-L", "--limit", help="How many versions to go back in report [limit > 0 or 'all']"
    )
    window = p_query.add_mutually_exclusive_group()
    window.add_argument(
        "--first", type=_positive_int, metavar="N", help="Output the first N packages"
    )
    window.add_argument("--last", type=_positive_int, metavar="N", help="Output the last N packages")
    p_query.add_argument(
        "-a",
        "--after",
        metavar="DATE",
        help='Only consider events that occurred after DATE [format: "YYYY-MM-DD HH:MM"]',
    )
    p_query.add_argument(
        "-x", "--exclude", action="store_true", help="Exclude packages matching the filters"
    )
    p_query.add_argument("--no-colors", action="store_true", help="Disable colored output")
    p_query.add_argument("--no-details", action="store_true", help="Only output package names")
    p_query.set_defaults(func=cmd_query)

    # serve (MCP server)
    p_serve = subparsers.add_parser("serve", help="Start MCP server for AI agent integration")
    p_serve.add_argument(
        "--transport",
        "-t",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport type (default: stdio)",
    )
    p_serve.add_argument(
        "--port", "-p", type=int, default=8080, help="Port for SSE transport (default: 8080)"
    )
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(level_from_verbosity(args.verbose, args.quiet))

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()

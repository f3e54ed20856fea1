"""
Query command for pkghist CLI.

Reads the logfile, runs the history query and prints the result.
"""

from __future__ import annotations

import argparse
import logging
import sys

from colorama import just_fix_windows_console

from pkghist.core import (
    Direction,
    FormattingError,
    InvalidConfigurationError,
    PkghistConfig,
    QueryOptions,
    parse_after,
    parse_limit,
    parse_output_format,
)
from pkghist.events import read_log
from pkghist.format import format_histories
from pkghist.query import run_query

logger = logging.getLogger("pkghist.cli")


def options_from_args(args: argparse.Namespace, config: PkghistConfig) -> QueryOptions:
    """Build validated QueryOptions from parsed CLI arguments.

    Raises:
        InvalidConfigurationError: On conflicting or invalid values
    """
    direction = None
    if getattr(args, "first", None) is not None:
        direction = Direction.first(args.first)
    elif getattr(args, "last", None) is not None:
        direction = Direction.last(args.last)

    limit = parse_limit(args.limit) if args.limit is not None else config.limit
    after = parse_after(args.after) if args.after else None

    return QueryOptions(
        removed_only=args.removed_only,
        with_removed=args.with_removed,
        filters=list(args.filters or []),
        exclude=args.exclude,
        after=after,
        limit=limit,
        direction=direction,
    )


def cmd_query(args: argparse.Namespace) -> None:
    """Show package histories from the logfile."""
    try:
        config = PkghistConfig.load(getattr(args, "config", None))
        options = options_from_args(args, config)
        output_format = parse_output_format(args.output_format or config.output_format)
    except (InvalidConfigurationError, FormattingError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logfile = args.logfile or config.logfile
    logger.debug("Options: %s", options)
    try:
        events = read_log(logfile)
    except OSError as e:
        print(f"Error: Unable to open {logfile}: {e.strerror or e}", file=sys.stderr)
        sys.exit(2)

    histories = run_query(events, options)
    with_colors = config.colors and not args.no_colors
    if with_colors:
        just_fix_windows_console()
    output = format_histories(
        histories,
        output_format,
        with_colors=with_colors,
        with_details=config.details and not args.no_details,
    )
    if output:
        print(output)

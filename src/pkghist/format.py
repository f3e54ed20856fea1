"""
Output formatting for package histories.

All formatters return a string; printing is left to the caller.
"""

from __future__ import annotations

import json
from typing import Sequence

from colorama import Fore

from pkghist.core import parse_output_format
from pkghist.events import Action
from pkghist.query import HistoryEvent, PackageHistory, histories_to_df


def _event_color(action: str, default: str = "") -> str:
    if action == Action.REMOVED.value:
        return Fore.RED
    if action == Action.DOWNGRADED.value:
        return Fore.YELLOW
    return default


def _paint(text: str, color: str, with_colors: bool) -> str:
    if not with_colors or not color:
        return text
    return f"{color}{text}{Fore.RESET}"


def format_plain(
    histories: Sequence[PackageHistory],
    with_colors: bool = True,
    with_details: bool = True,
) -> str:
    """Package name followed by its indented events.

    The package name is red when its newest event is a removal and green
    otherwise; removed events are red and downgrades yellow.
    """
    lines = []
    for history in histories:
        color = Fore.RED if history.last_action == Action.REMOVED.value else Fore.GREEN
        lines.append(_paint(history.package, color, with_colors))
        if not with_details:
            continue
        for event in history.events:
            entry = f"  [{event.date}] {event.action}\n    {event.version}"
            lines.append(_paint(entry, _event_color(event.action), with_colors))
    return "\n".join(lines)


def _max_lens(histories: Sequence[PackageHistory]) -> tuple[int, int, int, int]:
    events: list[HistoryEvent] = [e for h in histories for e in h.events]
    return (
        max((len(h.package) for h in histories), default=0),
        max((len(e.date) for e in events), default=0),
        max((len(e.action) for e in events), default=0),
        max((len(e.version) for e in events), default=0),
    )


def format_compact(
    histories: Sequence[PackageHistory],
    with_colors: bool = True,
    with_details: bool = True,
) -> str:
    """One padded ``|package|date|action|version|`` row per event."""
    p_max, d_max, a_max, v_max = _max_lens(histories)
    lines = []
    for history in histories:
        if not with_details:
            color = Fore.RED if history.last_action == Action.REMOVED.value else Fore.GREEN
            lines.append(_paint(f"|{history.package:<{p_max}}|", color, with_colors))
            continue
        for event in history.events:
            row = (
                f"|{history.package:<{p_max}}"
                f"|{event.date:<{d_max}}"
                f"|{event.action:<{a_max}}"
                f"|{event.version:<{v_max}}|"
            )
            lines.append(_paint(row, _event_color(event.action, Fore.GREEN), with_colors))
    return "\n".join(lines)


def format_json(histories: Sequence[PackageHistory], with_details: bool = True) -> str:
    """Pretty-printed JSON; just the package names without details."""
    if not with_details:
        return json.dumps([h.package for h in histories], indent=2)
    return json.dumps([h.to_dict() for h in histories], indent=2)


def format_histories(
    histories: Sequence[PackageHistory],
    output_format: str = "plain",
    with_colors: bool = True,
    with_details: bool = True,
) -> str:
    """Format query results for output.

    Args:
        histories: Query result
        output_format: One of 'plain', 'compact', 'json', 'csv', 'markdown'
        with_colors: Use ANSI colors (plain and compact only)
        with_details: Include events, not just package names

    Returns:
        Formatted string output (empty when there are no histories,
        `[]` for json)

    Raises:
        FormattingError: If output_format is unknown
    """
    fmt = parse_output_format(output_format)
    if fmt == "json":
        return format_json(histories, with_details)
    if not histories:
        return ""
    if fmt == "compact":
        return format_compact(histories, with_colors, with_details)
    if fmt == "csv":
        return histories_to_df(histories, with_details).to_csv(index=False).rstrip("\n")
    if fmt == "markdown":
        return histories_to_df(histories, with_details).to_markdown(index=False)
    return format_plain(histories, with_colors, with_details)

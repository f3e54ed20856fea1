"""
Query pipeline for package histories.

Every stage takes plain dicts/lists and returns new ones; nothing is
sorted or filtered in place, so the same group can be read by several
stages safely.

Example usage:
    from pkghist.events import read_log
    from pkghist.query import run_query
    from pkghist.core import QueryOptions

    events = read_log("/var/log/pacman.log")
    histories = run_query(events, QueryOptions(filters=["^linux$"], limit=5))

    # Or fluently
    names = HistoryQuery.from_file("/var/log/pacman.log").removed_only().packages()
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from operator import attrgetter
from pathlib import Path
from typing import Any, Iterable, Sequence

import pandas as pd

from pkghist.core import Direction, QueryOptions, StateMode
from pkghist.events import PacmanEvent, read_log

logger = logging.getLogger("pkghist.query")

PackageGroups = dict[str, list[PacmanEvent]]

# ============================================================================
# Output records
# ============================================================================


@dataclass
class HistoryEvent:
    """One entry of a package history, ready for output."""

    version: str
    date: str
    action: str

    @classmethod
    def from_pacman_event(cls, event: PacmanEvent) -> HistoryEvent:
        return cls(
            version=event.printable_version,
            date=str(event.timestamp),
            action=str(event.action),
        )


@dataclass
class PackageHistory:
    """All retained events of one package, oldest first."""

    package: str
    events: list[HistoryEvent] = field(default_factory=list)

    @classmethod
    def from_pacman_events(cls, events: Sequence[PacmanEvent]) -> PackageHistory:
        """Build a history from a non-empty group of one package's events."""
        ordered = chronological(events)
        return cls(
            package=ordered[0].package,
            events=[HistoryEvent.from_pacman_event(e) for e in ordered],
        )

    @property
    def last_action(self) -> str | None:
        return self.events[-1].action if self.events else None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# Pipeline stages
# ============================================================================


def chronological(events: Iterable[PacmanEvent]) -> list[PacmanEvent]:
    """Return a new list ordered by timestamp.

    The sort is stable: events with equal timestamps keep their input
    (file) order.
    """
    return sorted(events, key=attrgetter("timestamp"))


def newest_event(events: Sequence[PacmanEvent]) -> PacmanEvent:
    """The latest event; on equal timestamps, the one that came last."""
    if not events:
        raise ValueError("newest_event() requires at least one event")
    return chronological(events)[-1]


def group_events(events: Iterable[PacmanEvent]) -> PackageGroups:
    """Partition events by exact package name, keeping input order."""
    groups: PackageGroups = {}
    for event in events:
        groups.setdefault(event.package, []).append(event)
    return groups


def filter_state(groups: PackageGroups, mode: StateMode) -> PackageGroups:
    """Keep packages whose newest event agrees with the requested state.

    Args:
        groups: Package groups
        mode: ALL_PACKAGES keeps everything, WITHOUT_REMOVED drops packages
            whose newest event is a removal, WITHOUT_INSTALLED drops all
            others

    Returns:
        New mapping with the surviving packages
    """
    if mode is StateMode.ALL_PACKAGES:
        return {package: list(events) for package, events in groups.items()}

    kept: PackageGroups = {}
    for package, events in groups.items():
        newest = newest_event(events)
        logger.debug("Newest event for %s -> %s", package, newest)
        if mode is StateMode.WITHOUT_REMOVED and newest.action.is_removed:
            logger.info("Removing %s from result since it is currently not installed", package)
            continue
        if mode is StateMode.WITHOUT_INSTALLED and newest.action.is_installed:
            logger.info("Removing %s from result since it is currently installed", package)
            continue
        kept[package] = list(events)
    return kept


def is_relevant_package(patterns: Sequence[re.Pattern[str]], package: str) -> bool:
    """True if no patterns are given or any pattern matches part of the name."""
    return not patterns or any(p.search(package) for p in patterns)


def filter_names(
    groups: PackageGroups,
    patterns: Sequence[re.Pattern[str]],
    exclude: bool = False,
) -> PackageGroups:
    """Keep packages matching any pattern, or the non-matching ones if exclude."""
    if not patterns:
        return {package: list(events) for package, events in groups.items()}
    return {
        package: list(events)
        for package, events in groups.items()
        if is_relevant_package(patterns, package) != exclude
    }


def filter_after(events: Sequence[PacmanEvent], after: datetime | None) -> list[PacmanEvent]:
    """Keep events strictly later than ``after`` (all of them if None)."""
    if after is None:
        return list(events)
    return [e for e in events if e.timestamp > after]


def select_window(groups: PackageGroups, direction: Direction | None) -> PackageGroups:
    """Keep the first or last ``n`` packages.

    Packages are ordered by the timestamp of the last event in their
    current sequence, with the package name as tie-break.
    """
    if direction is None:
        return {package: list(events) for package, events in groups.items()}

    ordered = sorted(
        (package for package, events in groups.items() if events),
        key=lambda package: (groups[package][-1].timestamp, package),
    )
    if direction.backwards:
        selected = set(ordered[::-1][: direction.n])
    else:
        selected = set(ordered[: direction.n])
    logger.debug("Window %s selected %d of %d packages", direction, len(selected), len(ordered))
    return {package: list(events) for package, events in groups.items() if package in selected}


def limit_events(groups: PackageGroups, limit: int | None) -> PackageGroups:
    """Keep only the ``limit`` most recent events of each package."""
    if limit is None:
        return {package: list(events) for package, events in groups.items()}
    return {package: chronological(events)[-limit:] for package, events in groups.items()}


# ============================================================================
# Query engine
# ============================================================================


def run_query(events: Iterable[PacmanEvent], options: QueryOptions) -> list[PackageHistory]:
    """Run the full pipeline and return histories sorted by package name.

    Order of stages: group, state filter, date filter (packages left
    without events are dropped), name filter, window, limit.
    """
    groups = group_events(events)
    groups = filter_state(groups, options.state_mode)

    dated: PackageGroups = {}
    for package, package_events in groups.items():
        remaining = filter_after(chronological(package_events), options.after)
        if remaining:
            dated[package] = remaining
        else:
            logger.debug("Removing %s from result since it has no events after %s",
                         package, options.after)

    groups = filter_names(dated, options.patterns, options.exclude)
    groups = select_window(groups, options.direction)
    groups = limit_events(groups, options.limit)

    histories = [PackageHistory.from_pacman_events(e) for e in groups.values()]
    histories.sort(key=attrgetter("package"))
    logger.info("%d packages in result", len(histories))
    return histories


class HistoryQuery:
    """Fluent builder over run_query.

    Each method returns a new HistoryQuery; the events are shared and
    never modified.

    Example:
        HistoryQuery(events).match("^lib").after(cutoff).limit(2).histories()
    """

    def __init__(self, events: Sequence[PacmanEvent], options: QueryOptions | None = None):
        self._events = events
        self._options = options if options is not None else QueryOptions()

    @classmethod
    def from_file(cls, path: str | Path) -> HistoryQuery:
        """Create a query over the events of a logfile."""
        return cls(read_log(path))

    @property
    def options(self) -> QueryOptions:
        return self._options

    def _with(self, **changes: Any) -> HistoryQuery:
        return HistoryQuery(self._events, replace(self._options, **changes))

    def removed_only(self) -> HistoryQuery:
        return self._with(removed_only=True, with_removed=False)

    def with_removed(self) -> HistoryQuery:
        return self._with(with_removed=True, removed_only=False)

    def match(self, *patterns: str, exclude: bool | None = None) -> HistoryQuery:
        if exclude is None:
            exclude = self._options.exclude
        return self._with(filters=[*self._options.filters, *patterns], exclude=exclude)

    def after(self, when: datetime) -> HistoryQuery:
        return self._with(after=when)

    def first(self, n: int) -> HistoryQuery:
        return self._with(direction=Direction.first(n))

    def last(self, n: int) -> HistoryQuery:
        return self._with(direction=Direction.last(n))

    def limit(self, n: int | None) -> HistoryQuery:
        return self._with(limit=n)

    # -------------------------------------------------------------------------
    # Terminal methods
    # -------------------------------------------------------------------------

    def histories(self) -> list[PackageHistory]:
        return run_query(self._events, self._options)

    def packages(self) -> list[str]:
        return [h.package for h in self.histories()]

    def df(self) -> pd.DataFrame:
        """One row per retained event: package, date, action, version."""
        return histories_to_df(self.histories())


def histories_to_df(histories: Sequence[PackageHistory], details: bool = True) -> pd.DataFrame:
    """Flatten histories into a DataFrame."""
    if not details:
        return pd.DataFrame({"package": [h.package for h in histories]})
    rows = [
        {"package": h.package, "date": e.date, "action": e.action, "version": e.version}
        for h in histories
        for e in h.events
    ]
    return pd.DataFrame(rows, columns=["package", "date", "action", "version"])

"""
Pacman log events.

Parses lines of pacman's logfile into PacmanEvent records:

    [2019-07-14 21:33] [ALPM] upgraded libev (4.25-1 -> 4.27-1)
    [2019-10-23T20:25:18+0200] [ALPM] installed yay (9.4.2-1)

Lines that do not describe a package transaction (transaction started,
synchronizing package lists, scriptlet output, ...) are not events and
are skipped by read_log.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pkghist.core import ParseError

logger = logging.getLogger("pkghist.events")

LINE_PATTERN = re.compile(
    r"^\[(?P<date>\d{4}-\d{2}-\d{2} \d{2}:\d{2}|\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{4})\]"
    r"\s\[.+\]"
    r"\s(?P<action>upgraded|installed|removed|reinstalled|downgraded)"
    r"\s(?P<package>.+)"
    r"\s\((?P<from>.+?)(\s->\s(?P<to>.+))?\)"
)

MINUTE_FORMAT = "%Y-%m-%d %H:%M"
SECOND_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class Action(enum.Enum):
    """Package transaction recorded in the log."""

    INSTALLED = "Installed"
    REINSTALLED = "Reinstalled"
    UPGRADED = "Upgraded"
    DOWNGRADED = "Downgraded"
    REMOVED = "Removed"

    @classmethod
    def parse(cls, token: str) -> Action:
        """Parse an action token, ignoring case."""
        for action in cls:
            if action.value.lower() == token.strip().lower():
                return action
        raise ParseError(f"Invalid action: {token!r}")

    @property
    def is_removed(self) -> bool:
        return self is Action.REMOVED

    @property
    def is_installed(self) -> bool:
        return not self.is_removed

    def __str__(self) -> str:
        return self.value


def parse_date(value: str) -> datetime:
    """Parse a log timestamp into a naive datetime.

    Second-precision timestamps carry a UTC offset; the wall-clock time
    is kept and the offset dropped.
    """
    try:
        return datetime.strptime(value, MINUTE_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.strptime(value, SECOND_FORMAT).replace(tzinfo=None)
    except ValueError:
        raise ParseError(f"Invalid date: {value!r}")


@dataclass(frozen=True)
class PacmanEvent:
    """One package transaction parsed from the log."""

    timestamp: datetime
    action: Action
    package: str
    from_version: str
    to_version: str | None = None

    @classmethod
    def from_line(cls, line: str) -> PacmanEvent:
        """Parse a log line.

        Raises:
            ParseError: If the line is not a package transaction
        """
        match = LINE_PATTERN.match(line)
        if match is None:
            raise ParseError(f"Not a package event: {line.rstrip()!r}")
        return cls(
            timestamp=parse_date(match.group("date")),
            action=Action.parse(match.group("action")),
            package=match.group("package"),
            from_version=match.group("from"),
            to_version=match.group("to"),
        )

    @property
    def printable_version(self) -> str:
        """The version the package ended up at after this event."""
        return self.to_version if self.to_version is not None else self.from_version

    def sort_key(self) -> tuple[str, datetime]:
        """Key for ordering a flat event collection: package, then time."""
        return (self.package, self.timestamp)

    def to_line(self, source: str = "ALPM") -> str:
        """Serialize back into a minute-precision log line."""
        versions = self.from_version
        if self.to_version is not None:
            versions += f" -> {self.to_version}"
        date = self.timestamp.strftime(MINUTE_FORMAT)
        return f"[{date}] [{source}] {self.action.value.lower()} {self.package} ({versions})"


def parse_line(line: str) -> PacmanEvent:
    """Parse one log line into a PacmanEvent (raises ParseError)."""
    return PacmanEvent.from_line(line)


def read_log(path: str | Path) -> list[PacmanEvent]:
    """Read all package events from a pacman logfile.

    Lines that are not package events are skipped. Lines that are not
    valid UTF-8 are skipped with a warning.

    Args:
        path: Path to the logfile

    Returns:
        Events in file order

    Raises:
        OSError: If the file cannot be opened or read
    """
    events: list[PacmanEvent] = []
    with open(path, "rb") as f:
        for idx, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning("Skipping line #%d (%s)", idx, e.reason)
                continue
            try:
                events.append(parse_line(line))
            except ParseError:
                logger.debug("Ignoring line #%d: %s", idx, line.rstrip())
    logger.info("Read %d events from %s", len(events), path)
    return events

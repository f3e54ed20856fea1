"""
Core utilities and shared types for pkghist.

This module contains the error types, query options and configuration
that are shared by the parser, the query pipeline and the CLI commands.
"""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

# ============================================================================
# Configuration
# ============================================================================

DEFAULT_LOGFILE = "/var/log/pacman.log"
DEFAULT_OUTPUT_FORMAT = "plain"
OUTPUT_FORMATS = ("plain", "compact", "json", "csv", "markdown")
AFTER_FORMAT = "%Y-%m-%d %H:%M"
CONFIG_ENV = "PKGHIST_CONFIG"
USER_CONFIG_PATH = Path.home() / ".config" / "pkghist" / "config.yaml"

# ============================================================================
# Errors
# ============================================================================


class PkghistError(Exception):
    """Base class for all pkghist errors."""


class ParseError(PkghistError):
    """A single log line (or token) could not be parsed."""


class InvalidConfigurationError(PkghistError):
    """Query options or configuration values are invalid or conflicting."""


class FormattingError(PkghistError):
    """Query results could not be rendered."""


# ============================================================================
# Query options
# ============================================================================


class StateMode(enum.Enum):
    """Which packages survive based on their newest event."""

    ALL_PACKAGES = "all"
    WITHOUT_REMOVED = "without-removed"
    WITHOUT_INSTALLED = "without-installed"


@dataclass(frozen=True)
class Direction:
    """Select the first or last ``n`` packages by their most recent event."""

    n: int
    backwards: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n <= 0:
            raise InvalidConfigurationError(f"window size must be greater than 0, got {self.n!r}")

    @classmethod
    def first(cls, n: int) -> Direction:
        return cls(n=n)

    @classmethod
    def last(cls, n: int) -> Direction:
        return cls(n=n, backwards=True)

    def __str__(self) -> str:
        return f"{'last' if self.backwards else 'first'}({self.n})"


@dataclass
class QueryOptions:
    """Validated options for one history query.

    Regular expressions in ``filters`` are compiled once, when the options
    are created, and handed to the name filter as ``patterns``.

    Example usage:
        options = QueryOptions(filters=["^linux"], limit=3)
        histories = run_query(events, options)
    """

    removed_only: bool = False
    with_removed: bool = False
    filters: list[str] = field(default_factory=list)
    exclude: bool = False
    after: datetime | None = None
    limit: int | None = None
    direction: Direction | None = None

    patterns: list[re.Pattern[str]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.removed_only and self.with_removed:
            raise InvalidConfigurationError(
                "--removed-only and --with-removed cannot be used together"
            )
        if self.direction is not None and self.filters:
            raise InvalidConfigurationError("--first/--last cannot be combined with filters")
        if self.limit is not None and (
            isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0
        ):
            raise InvalidConfigurationError(f"limit must be greater than 0, got {self.limit!r}")

        self.filters = list(self.filters)
        compiled = []
        for pattern in self.filters:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise InvalidConfigurationError(f"Invalid filter '{pattern}': {e}") from e
        self.patterns = compiled

    @property
    def state_mode(self) -> StateMode:
        """Map the removed-only / with-removed switches to a StateMode."""
        if self.removed_only:
            return StateMode.WITHOUT_INSTALLED
        if self.with_removed:
            return StateMode.ALL_PACKAGES
        return StateMode.WITHOUT_REMOVED


def parse_after(value: str) -> datetime:
    """Parse an ``--after`` value in ``YYYY-MM-DD HH:MM`` format."""
    try:
        return datetime.strptime(value.strip(), AFTER_FORMAT)
    except ValueError:
        raise InvalidConfigurationError(
            f'Please provide a date in the format "YYYY-MM-DD HH:MM", got {value!r}'
        )


def parse_limit(value: Any) -> int | None:
    """Parse a limit value. ``all`` (or None) means no limit."""
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() == "all":
            return None
        try:
            value = int(value)
        except ValueError:
            raise InvalidConfigurationError(f"Please provide a positive number, got {value!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(f"Please provide a positive number, got {value!r}")
    if value <= 0:
        raise InvalidConfigurationError("limit must be greater than 0")
    return value


def parse_output_format(value: str) -> str:
    """Normalize an output format name (case-insensitive)."""
    fmt = str(value).strip().lower()
    if fmt not in OUTPUT_FORMATS:
        raise FormattingError(
            f"Unknown output format: {value}. Choose one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return fmt


# ============================================================================
# Configuration file
# ============================================================================


@dataclass
class PkghistConfig:
    """Defaults for the CLI, optionally loaded from a YAML file.

    Lookup order for the file: explicit path, ``$PKGHIST_CONFIG``,
    ``~/.config/pkghist/config.yaml``. A missing default file is not an
    error; CLI flags always override values from the file.

    Example config.yaml:
        logfile: /var/log/pacman.log
        output_format: compact
        colors: false
        details: true
        limit: 3
    """

    logfile: str = DEFAULT_LOGFILE
    output_format: str = DEFAULT_OUTPUT_FORMAT
    colors: bool = True
    details: bool = True
    limit: int | None = None
    source: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path | None = None) -> PkghistConfig:
        """Build a config from a parsed YAML mapping."""
        if not isinstance(data, dict):
            raise InvalidConfigurationError(
                f"Configuration in {source or '<input>'} must be a mapping"
            )
        config = cls(source=source)
        if "logfile" in data:
            if not isinstance(data["logfile"], str) or not data["logfile"]:
                raise InvalidConfigurationError("'logfile' must be a path")
            config.logfile = data["logfile"]
        if "output_format" in data:
            try:
                config.output_format = parse_output_format(data["output_format"])
            except FormattingError as e:
                raise InvalidConfigurationError(str(e)) from e
        for key in ("colors", "details"):
            if key in data:
                if not isinstance(data[key], bool):
                    raise InvalidConfigurationError(f"'{key}' must be true or false")
                setattr(config, key, data[key])
        if "limit" in data:
            config.limit = parse_limit(data["limit"])
        return config

    @classmethod
    def load(cls, path: str | Path | None = None) -> PkghistConfig:
        """Load configuration, falling back to built-in defaults.

        Args:
            path: Explicit config file (must exist if given)

        Returns:
            PkghistConfig with values from the file applied.
        """
        explicit = path or os.environ.get(CONFIG_ENV)
        if explicit:
            config_path = Path(explicit).expanduser()
            if not config_path.exists():
                raise InvalidConfigurationError(f"Config file not found: {config_path}")
        elif USER_CONFIG_PATH.exists():
            config_path = USER_CONFIG_PATH
        else:
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidConfigurationError(f"Unable to read {config_path}: {e}") from e
        return cls.from_dict(data, source=config_path)

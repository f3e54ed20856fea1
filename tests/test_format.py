"""Tests for output formatting."""

import json

import pytest
from colorama import Fore

from pkghist.core import FormattingError
from pkghist.format import format_compact, format_histories, format_json, format_plain
from pkghist.query import HistoryEvent, PackageHistory


@pytest.fixture
def single():
    return [
        PackageHistory(
            package="foo",
            events=[HistoryEvent(version="0.0.1", date="2019-08-26 12:00:00", action="Installed")],
        )
    ]


@pytest.fixture
def mixed():
    return [
        PackageHistory(
            package="foo",
            events=[
                HistoryEvent(version="0.0.2", date="2019-08-26 12:00:00", action="Upgraded"),
                HistoryEvent(version="0.0.1", date="2019-08-26 13:00:00", action="Downgraded"),
                HistoryEvent(version="0.0.1", date="2019-08-26 14:00:00", action="Removed"),
            ],
        )
    ]


class TestFormatPlain:
    """Tests for the plain format."""

    def test_no_colors(self, single):
        assert format_plain(single, with_colors=False) == (
            "foo\n  [2019-08-26 12:00:00] Installed\n    0.0.1"
        )

    def test_no_colors_no_details(self, single):
        assert format_plain(single, with_colors=False, with_details=False) == "foo"

    def test_colored(self, mixed):
        """Removed package is red; downgrades yellow, removals red."""
        assert format_plain(mixed) == (
            f"{Fore.RED}foo{Fore.RESET}\n"
            "  [2019-08-26 12:00:00] Upgraded\n    0.0.2\n"
            f"{Fore.YELLOW}  [2019-08-26 13:00:00] Downgraded\n    0.0.1{Fore.RESET}\n"
            f"{Fore.RED}  [2019-08-26 14:00:00] Removed\n    0.0.1{Fore.RESET}"
        )

    def test_colored_no_details(self, single):
        assert format_plain(single, with_details=False) == f"{Fore.GREEN}foo{Fore.RESET}"


class TestFormatCompact:
    """Tests for the compact format."""

    def test_colored(self, mixed):
        assert format_compact(mixed) == (
            f"{Fore.GREEN}|foo|2019-08-26 12:00:00|Upgraded  |0.0.2|{Fore.RESET}\n"
            f"{Fore.YELLOW}|foo|2019-08-26 13:00:00|Downgraded|0.0.1|{Fore.RESET}\n"
            f"{Fore.RED}|foo|2019-08-26 14:00:00|Removed   |0.0.1|{Fore.RESET}"
        )

    def test_no_colors(self, single):
        assert format_compact(single, with_colors=False) == (
            "|foo|2019-08-26 12:00:00|Installed|0.0.1|"
        )

    def test_pads_columns(self):
        histories = [
            PackageHistory("another", [HistoryEvent("1.0.2-deadbeef", "2019-09-01 13:30:00", "Upgraded")]),
            PackageHistory("foo", [HistoryEvent("0.0.1", "2019-08-26 12:00:00", "Installed")]),
        ]
        assert format_compact(histories, with_colors=False).splitlines() == [
            "|another|2019-09-01 13:30:00|Upgraded |1.0.2-deadbeef|",
            "|foo    |2019-08-26 12:00:00|Installed|0.0.1         |",
        ]

    def test_no_details_one_row_per_package(self, mixed):
        assert format_compact(mixed, with_details=False) == f"{Fore.RED}|foo|{Fore.RESET}"


class TestFormatJson:
    """Tests for the json format."""

    def test_details(self, single):
        assert json.loads(format_json(single)) == [
            {
                "package": "foo",
                "events": [
                    {"version": "0.0.1", "date": "2019-08-26 12:00:00", "action": "Installed"}
                ],
            }
        ]

    def test_no_details(self, single):
        assert format_json(single, with_details=False) == '[\n  "foo"\n]'

    def test_empty(self):
        assert format_histories([], "json") == "[]"


class TestFormatHistories:
    """Tests for format dispatch."""

    def test_unknown_format(self, single):
        with pytest.raises(FormattingError):
            format_histories(single, "xml")

    def test_format_is_case_insensitive(self, single):
        assert format_histories(single, "JsOn", with_details=False) == '[\n  "foo"\n]'

    def test_empty_plain(self):
        assert format_histories([], "plain") == ""

    def test_csv(self, mixed):
        output = format_histories(mixed, "csv")
        assert output.splitlines()[0] == "package,date,action,version"
        assert output.splitlines()[1] == "foo,2019-08-26 12:00:00,Upgraded,0.0.2"
        assert len(output.splitlines()) == 4

    def test_csv_no_details(self, mixed):
        assert format_histories(mixed, "csv", with_details=False) == "package\nfoo"

    def test_markdown(self, single):
        output = format_histories(single, "markdown")
        assert "| package" in output
        assert "Installed" in output

"""
pkghist - trace package versions from pacman's logfile.

Example usage:
    from pkghist import HistoryQuery

    # Installed packages touched most recently
    for history in HistoryQuery.from_file("/var/log/pacman.log").last(5).histories():
        print(history.package, history.events[-1].version)
"""

__version__ = "0.1.0"

from pkghist.events import Action, PacmanEvent, read_log
from pkghist.query import HistoryQuery, PackageHistory, run_query

__all__ = [
    "Action",
    "HistoryQuery",
    "PackageHistory",
    "PacmanEvent",
    "read_log",
    "run_query",
    "__version__",
]

"""Shared fixtures for pkghist tests."""

import shutil
import tempfile
from pathlib import Path

import pytest

SAMPLE_LOG = """\
[2019-07-14 21:33] [PACMAN] synchronizing package lists
[2019-07-14 21:33] [PACMAN] starting full system upgrade
[2019-07-14 21:33] [ALPM] transaction started
[2019-07-14 21:33] [ALPM] installed feh (3.1.3-1)
[2019-07-14 21:33] [ALPM] upgraded libev (4.25-1 -> 4.27-1)
[2019-07-14 21:33] [ALPM] upgraded iso-codes (4.2-1 -> 4.3-1)
"""

HISTORY_LOG = """\
[2019-03-03 10:02] [ALPM] installed bash (5.0.0-1)
[2019-03-16 12:57] [ALPM] upgraded bash (5.0.0-1 -> 5.0.002-1)
[2019-04-14 21:51] [ALPM] upgraded bash (5.0.002-1 -> 5.0.003-1)
[2019-05-10 12:45] [ALPM] upgraded bash (5.0.003-1 -> 5.0.007-1)
[2019-06-23 21:09] [ALPM] upgraded linux (5.1.12.arch1-1 -> 5.1.14.arch1-1)
[2019-06-26 12:48] [ALPM] upgraded linux (5.1.14.arch1-1 -> 5.1.15.arch1-1)
[2019-07-08 01:01] [ALPM] upgraded linux-firmware (20190618.acb56f2-1 -> 20190628.70e4394-1)
[2019-07-08 01:01] [ALPM] upgraded linux (5.1.15.arch1-1 -> 5.1.16.arch1-1)
[2019-07-10 09:00] [ALPM] installed gnome-common (3.18.0-3)
[2019-07-11 22:08] [ALPM] upgraded linux (5.1.16.arch1-1 -> 5.2.arch2-1)
[2019-07-12 14:05] [ALPM] removed gnome-common (3.18.0-3)
[2019-07-16 21:09] [ALPM] upgraded linux (5.2.arch2-1 -> 5.2.1.arch1-1)
[2019-07-20 08:00] [ALPM] downgraded mps-youtube (0.2.8-2 -> 0.2.8-1)
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp)


@pytest.fixture
def write_log(temp_dir):
    """Fixture that writes log content to a file and returns its path."""

    def _write(content, name="pacman.log"):
        path = temp_dir / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        return path

    return _write


@pytest.fixture
def sample_log(write_log):
    """Small log with three package events and some noise."""
    return write_log(SAMPLE_LOG)


@pytest.fixture
def history_log(write_log):
    """Log with several events per package, one removal and one downgrade."""
    return write_log(HISTORY_LOG)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, temp_dir):
    """Keep the user's config file out of tests."""
    monkeypatch.delenv("PKGHIST_CONFIG", raising=False)
    monkeypatch.setattr("pkghist.core.USER_CONFIG_PATH", temp_dir / "no-config.yaml")

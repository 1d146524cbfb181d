import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Qt tests run headless.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from tracknest.config import ENTRIES
from tracknest.domain.models.core import Entry, EntryType
from tracknest.infrastructure.memory_gateway import InMemoryRemoteSyncGateway


def _entry(record_id, title=None, **kwargs):
    return Entry(id=record_id, title=title or f"Entry {record_id:02d}", **kwargs)


@pytest.fixture
def make_entry():
    return _entry


@pytest.fixture
def entries():
    types = list(EntryType)
    return [_entry(i, type=types[i % len(types)]) for i in range(1, 16)]


@pytest.fixture
def gateway(entries):
    gw = InMemoryRemoteSyncGateway()
    gw.seed(ENTRIES, entries)
    return gw


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setenv("TRACKNEST_SETTINGS", str(path))
    return path

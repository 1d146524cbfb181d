"""Sample records for ``tracknest --demo``."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tracknest.config import ENTRIES, GROUPS, USERS
from tracknest.domain.models.core import Entry, EntryType, Group, User, Visibility
from tracknest.infrastructure.memory_gateway import InMemoryRemoteSyncGateway

DEMO_USERNAME = "admin"

_GROUPS = (
    ("Morning Runners", "Early 5k club", Visibility.PUBLIC),
    ("Keto Crew", "Low-carb meal logs", Visibility.PUBLIC),
    ("Migraine Diary", "Triggers and relief", Visibility.PRIVATE),
)

_ENTRIES = (
    ("Interval run", EntryType.WORKOUT, "6x400m", 0),
    ("Breakfast", EntryType.DIET, "Eggs and spinach", 1),
    ("Headache", EntryType.SYMPTOM, "Behind left eye", 2),
    ("Long run", EntryType.WORKOUT, "14 km easy", 0),
    ("Lunch", EntryType.DIET, "Chicken salad", 1),
    ("Stretching", EntryType.OTHER, "Hamstrings", None),
    ("Tempo run", EntryType.WORKOUT, "3x2km", 0),
    ("Dinner", EntryType.DIET, "Salmon, broccoli", 1),
    ("Nausea", EntryType.SYMPTOM, "After coffee", 2),
    ("Hill repeats", EntryType.WORKOUT, "8x hill sprint", 0),
    ("Snack", EntryType.DIET, "Almonds", None),
    ("Fatigue", EntryType.SYMPTOM, "Mid afternoon", 2),
)


def seeded_gateway(now: datetime | None = None) -> InMemoryRemoteSyncGateway:
    """Return an in-memory gateway populated with a small sample data set."""

    now = now or datetime.now(timezone.utc)
    gateway = InMemoryRemoteSyncGateway()
    groups = gateway.seed(
        GROUPS,
        [
            Group(id=None, name=name, description=description, visibility=visibility, created_by=DEMO_USERNAME)
            for name, description, visibility in _GROUPS
        ],
    )
    gateway.seed(
        ENTRIES,
        [
            Entry(
                id=None,
                title=title,
                type=entry_type,
                description=description,
                date=now - timedelta(days=offset),
                created_by=DEMO_USERNAME,
                group=groups[group_index] if group_index is not None else None,
            )
            for offset, (title, entry_type, description, group_index) in enumerate(_ENTRIES)
        ],
    )
    gateway.seed(
        USERS,
        [User(DEMO_USERNAME, role="ADMIN"), User("jules"), User("mara"), User("tomasz")],
    )
    return gateway

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Hashable, Optional, Protocol


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class EntryType(str, Enum):
    WORKOUT = "Workout"
    DIET = "Diet"
    SYMPTOM = "Symptom"
    OTHER = "Other"


class Record(Protocol):
    """Anything the list controller can hold: a stable, hashable ``id``."""

    @property
    def id(self) -> Hashable: ...


@dataclass
class Group:
    id: Optional[int]
    name: str
    description: str = ""
    visibility: Visibility = Visibility.PRIVATE
    created_by: Optional[str] = None


@dataclass
class Entry:
    id: Optional[int]
    title: str
    type: EntryType = EntryType.WORKOUT
    description: str = ""
    visibility: Visibility = Visibility.PRIVATE
    date: Optional[datetime] = None
    created_by: Optional[str] = None
    group: Optional[Group] = None

    @property
    def group_name(self) -> Optional[str]:
        return self.group.name if self.group is not None else None


@dataclass
class User:
    username: str
    role: str = "USER"
    # Write-only; the backend never returns it.
    password: Optional[str] = None

    @property
    def id(self) -> str:
        return self.username


def field_value(record: Any, key: str) -> Any:
    """Return the attribute *key* of *record*, unwrapping enums to their value."""
    value = getattr(record, key, None)
    if isinstance(value, Enum):
        return value.value
    return value

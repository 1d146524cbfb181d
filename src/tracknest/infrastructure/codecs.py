"""JSON <-> domain record conversion for the REST backend."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from dateutil import parser as date_parser

from tracknest.config import ENTRIES, GROUPS, USERS
from tracknest.domain.models.core import Entry, EntryType, Group, User, Visibility


def parse_date(value: Any) -> Optional[datetime]:
    """Accept ISO-8601 strings, ``yyyy-mm-dd`` and epoch milliseconds (Jackson's default).

    The result is always timezone-aware; values without an offset are read as UTC.
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except ValueError as exc:
            raise ValueError(f"Unrecognised date {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _enum(enum_type, value, default):
    if value in (None, ""):
        return default
    try:
        return enum_type(value)
    except ValueError:
        # Tolerate case drift such as "workout" or "public".
        for member in enum_type:
            if member.value.lower() == str(value).lower():
                return member
        raise


def group_from_json(data: dict[str, Any]) -> Group:
    return Group(
        id=data.get("id"),
        name=data.get("name") or "",
        description=data.get("description") or "",
        visibility=_enum(Visibility, data.get("visibility"), Visibility.PRIVATE),
        created_by=data.get("createdBy"),
    )


def group_to_json(group: Group) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": group.name,
        "description": group.description,
        "visibility": group.visibility.value,
    }
    if group.id is not None:
        payload["id"] = group.id
    if group.created_by:
        payload["createdBy"] = group.created_by
    return payload


def entry_from_json(data: dict[str, Any]) -> Entry:
    group = data.get("group")
    return Entry(
        id=data.get("id"),
        title=data.get("title") or "",
        type=_enum(EntryType, data.get("type"), EntryType.OTHER),
        description=data.get("description") or "",
        visibility=_enum(Visibility, data.get("visibility"), Visibility.PRIVATE),
        date=parse_date(data.get("date")),
        created_by=data.get("createdBy"),
        group=group_from_json(group) if isinstance(group, dict) else None,
    )


def entry_to_json(entry: Entry) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": entry.title,
        "type": entry.type.value,
        "description": entry.description,
        "visibility": entry.visibility.value,
        "date": format_date(entry.date),
        "createdBy": entry.created_by,
        # The backend only reads the group's id when linking an entry.
        "group": {"id": entry.group.id} if entry.group is not None else None,
    }
    if entry.id is not None:
        payload["id"] = entry.id
    return payload


def user_from_json(data: dict[str, Any]) -> User:
    return User(username=data["username"], role=data.get("role") or "USER")


def user_to_json(user: User) -> dict[str, Any]:
    payload: dict[str, Any] = {"username": user.username, "role": user.role}
    if user.password:
        payload["password"] = user.password
    return payload


DECODERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    ENTRIES: entry_from_json,
    GROUPS: group_from_json,
    USERS: user_from_json,
}

ENCODERS: dict[str, Callable[[Any], dict[str, Any]]] = {
    ENTRIES: entry_to_json,
    GROUPS: group_to_json,
    USERS: user_to_json,
}


def decode(collection: str, data: dict[str, Any]) -> Any:
    return DECODERS[collection](data)


def encode(collection: str, record: Any) -> dict[str, Any]:
    return ENCODERS[collection](record)

from datetime import datetime, timezone

import pytest

from tracknest.config import ENTRIES, USERS
from tracknest.domain.models.core import EntryType, Visibility
from tracknest.infrastructure import codecs


def test_entry_from_json_with_nested_group():
    entry = codecs.decode(
        ENTRIES,
        {
            "id": 4,
            "title": "Run",
            "type": "workout",
            "visibility": "public",
            "date": "2024-03-01T07:30:00",
            "createdBy": "mara",
            "group": {"id": 2, "name": "Runners", "visibility": "PUBLIC"},
        },
    )

    assert entry.type is EntryType.WORKOUT
    assert entry.visibility is Visibility.PUBLIC
    assert entry.date == datetime(2024, 3, 1, 7, 30, tzinfo=timezone.utc)
    assert entry.group_name == "Runners"
    assert entry.created_by == "mara"


def test_missing_optional_fields_fall_back():
    entry = codecs.entry_from_json({"id": 1, "title": None})

    assert entry.title == ""
    assert entry.type is EntryType.OTHER
    assert entry.date is None
    assert entry.group is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-02-29", datetime(2024, 2, 29, tzinfo=timezone.utc)),
        ("2024-02-29T10:00:00+02:00", datetime(2024, 2, 29, 8, tzinfo=timezone.utc)),
        (1_700_000_000_000, datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)),
        (None, None),
        ("", None),
    ],
)
def test_parse_date(value, expected):
    assert codecs.parse_date(value) == expected


def test_parse_date_rejects_garbage():
    with pytest.raises(ValueError):
        codecs.parse_date("next tuesday-ish")


def test_unknown_enum_value_raises():
    with pytest.raises(ValueError):
        codecs.entry_from_json({"id": 1, "title": "x", "type": "Sleep"})


def test_entry_to_json_links_group_by_id(make_entry):
    from tracknest.domain.models.core import Group

    payload = codecs.encode(ENTRIES, make_entry(3, group=Group(id=5, name="G"), date=datetime(2024, 1, 2)))

    assert payload["group"] == {"id": 5}
    assert payload["date"] == "2024-01-02T00:00:00"
    assert payload["id"] == 3


def test_user_password_is_write_only():
    user = codecs.decode(USERS, {"username": "ana", "role": "ADMIN", "password": "hash"})

    assert user.password is None
    assert user.id == "ana"
    assert "password" not in codecs.encode(USERS, user)


def test_decoded_dates_sort_together_whatever_their_wire_form():
    from tracknest.domain.models.query import SortSpec
    from tracknest.gui.viewmodels.paginator import sort_records

    entries = [
        codecs.entry_from_json({"id": 1, "title": "a", "date": "2024-01-03"}),
        codecs.entry_from_json({"id": 2, "title": "b", "date": 1_704_153_600_000}),  # 2024-01-02
        codecs.entry_from_json({"id": 3, "title": "c", "date": "2024-01-01T12:00:00"}),
    ]

    assert all(entry.date.tzinfo is not None for entry in entries)
    assert [e.id for e in sort_records(entries, SortSpec("date"))] == [3, 2, 1]

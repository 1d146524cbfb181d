"""Sorted, paged derivation of a collection. Never mutates its input."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Hashable, Sequence

from tracknest.domain.models.core import field_value
from tracknest.domain.models.query import PageSpec, SortSpec


@dataclass(frozen=True)
class DerivedView:
    page_items: list[Any] = field(default_factory=list)
    total_pages: int = 1
    range_label: str = "Showing rows 0 - 0 of 0"
    current_page: int = 1
    total_count: int = 0

    @property
    def visible_ids(self) -> list[Hashable]:
        return [record.id for record in self.page_items]

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        return value.casefold()
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    # Nested records such as an entry's group sort by their display name.
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return name.casefold()
    return str(value).casefold()


def sort_records(records: Sequence[Any], sort: SortSpec) -> list[Any]:
    """Stable sort of *records* by ``sort.key``.

    Strings compare case-insensitively, nested records by their name and
    naive datetimes as UTC. Records whose key is missing
    (``None``) trail in both directions. Ties keep their input order
    in both directions as well.
    """
    if sort.key is None:
        return list(records)
    present = []
    missing = []
    for record in records:
        value = field_value(record, sort.key)
        if value is None:
            missing.append(record)
        else:
            present.append((_comparable(value), record))
    # ``reverse=True`` keeps equal elements in original order.
    present.sort(key=lambda pair: pair[0], reverse=sort.descending)
    return [record for _, record in present] + missing


def range_label(page: PageSpec, count: int) -> str:
    if count == 0:
        return "Showing rows 0 - 0 of 0"
    start, stop = page.bounds()
    return f"Showing rows {start + 1} - {min(stop, count)} of {count}"


class SortFilterPaginator:
    """Derives the rendered page from a collection, a sort and a page spec."""

    def derive(self, collection: Sequence[Any], sort: SortSpec, page: PageSpec) -> DerivedView:
        ordered = sort_records(collection, sort)
        count = len(ordered)
        page = page.clamped(count)
        start, stop = page.bounds()
        return DerivedView(
            page_items=ordered[start:stop],
            total_pages=page.total_pages(count),
            range_label=range_label(page, count),
            current_page=page.current_page,
            total_count=count,
        )

"""Locally materialised, id-unique view over a remote collection."""

from __future__ import annotations

import logging
from typing import Any, Hashable, Iterable, Iterator, Optional, Sequence

from tracknest.errors import DuplicateRecordError, RecordNotFoundError
from tracknest.gui.viewmodels.signal import Signal

LOGGER = logging.getLogger(__name__)

HEAD: int = 0


class ResourceCollectionStore:
    """Ordered records, unique by ``id``.

    Insertion order is the natural display order. Every mutation emits
    ``changed`` once, after the store is consistent again.
    """

    def __init__(self, records: Iterable[Any] = ()) -> None:
        self._records: list[Any] = []
        self._index: dict[Hashable, Any] = {}
        self.changed = Signal("store.changed")
        if records:
            self._assign(records)

    # -- read access -------------------------------------------------------

    @property
    def records(self) -> list[Any]:
        return list(self._records)

    @property
    def ids(self) -> list[Hashable]:
        return [record.id for record in self._records]

    def get(self, record_id: Hashable) -> Optional[Any]:
        return self._index.get(record_id)

    def index_of(self, record_id: Hashable) -> int:
        for position, record in enumerate(self._records):
            if record.id == record_id:
                return position
        raise RecordNotFoundError(f"No record with id {record_id!r}")

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._index

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._records))

    # -- mutation ----------------------------------------------------------

    def replace_all(self, records: Iterable[Any]) -> None:
        """Make the store exactly *records*, in the given order."""
        self._assign(records)
        self.changed.emit()

    def insert(self, record: Any, position: int = HEAD) -> None:
        """Add *record* at *position* (head by default)."""
        self.insert_many([record], position)

    def insert_many(self, records: Sequence[Any], position: int = HEAD) -> None:
        """Add *records* as one block at *position*, keeping their order.

        The whole block is rejected if any id is already resident or
        repeated within the block.
        """
        seen: set[Hashable] = set()
        for record in records:
            if record.id in self._index or record.id in seen:
                raise DuplicateRecordError(f"Record with id {record.id!r} already exists")
            seen.add(record.id)
        if not records:
            return
        position = max(0, min(position, len(self._records)))
        self._records[position:position] = list(records)
        for record in records:
            self._index[record.id] = record
        self.changed.emit()

    def append(self, record: Any) -> None:
        self.insert(record, len(self._records))

    def update(self, record: Any) -> None:
        """Replace the resident record sharing *record*'s id, in place."""
        position = self.index_of(record.id)
        self._records[position] = record
        self._index[record.id] = record
        self.changed.emit()

    def remove(self, ids: Iterable[Hashable]) -> list[Any]:
        """Drop the records with *ids*; return them in their store order.

        Unknown ids are skipped.
        """
        wanted = set(ids)
        removed = [record for record in self._records if record.id in wanted]
        if not removed:
            return []
        self._records = [record for record in self._records if record.id not in wanted]
        for record in removed:
            del self._index[record.id]
        self.changed.emit()
        return removed

    # -- internals ---------------------------------------------------------

    def _assign(self, records: Iterable[Any]) -> None:
        fresh: list[Any] = []
        index: dict[Hashable, Any] = {}
        for record in records:
            if record.id in index:
                LOGGER.warning("Dropping duplicate id %r from snapshot", record.id)
                continue
            index[record.id] = record
            fresh.append(record)
        self._records = fresh
        self._index = index

"""Dictionary-backed gateway used by the demo mode and the test-suite."""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import replace
from typing import Any, Dict, Hashable, Iterable, List, Optional

from tracknest.config import USERS
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.domain.models.core import field_value
from tracknest.errors import DuplicateRecordError, RemoteError, RemoteNotFoundError

LOGGER = logging.getLogger(__name__)


class InMemoryRemoteSyncGateway(IRemoteSyncGateway):
    """Holds one ordered dict per collection and assigns integer ids.

    ``latency`` adds an ``asyncio.sleep`` before every call so that
    interleavings (undo during a commit, say) can be exercised. ``fail_on``
    makes calls for specific ``(operation, id)`` pairs raise ``RemoteError``.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._collections: Dict[str, Dict[Hashable, Any]] = {}
        self._next_id = 1
        self._latency = latency
        self._failures: set[tuple[str, Optional[Hashable]]] = set()
        self.calls: List[tuple[str, str, Optional[Hashable]]] = []

    def seed(self, collection: str, records: Iterable[Any]) -> List[Any]:
        """Store *records*, assigning ids to those that have none."""
        stored = []
        for record in records:
            stored.append(self._put(collection, record))
        return stored

    def fail_on(self, operation: str, record_id: Optional[Hashable] = None) -> None:
        self._failures.add((operation, record_id))

    def records(self, collection: str) -> List[Any]:
        return [copy.copy(record) for record in self._collections.get(collection, {}).values()]

    # -- IRemoteSyncGateway --------------------------------------------------

    async def list(self, collection: str) -> List[Any]:
        await self._enter("list", collection)
        return self.records(collection)

    async def search(self, collection: str, field: str, term: str) -> List[Any]:
        await self._enter("search", collection)
        needle = term.casefold()
        return [
            copy.copy(record)
            for record in self._collections.get(collection, {}).values()
            if needle in str(field_value(record, field) or "").casefold()
        ]

    async def create(self, collection: str, record: Any) -> Any:
        await self._enter("create", collection)
        if collection != USERS:
            record = replace(record, id=None)
        elif record.id in self._collections.get(collection, {}):
            raise DuplicateRecordError(f"User {record.id!r} already exists")
        return copy.copy(self._put(collection, record))

    async def update(self, collection: str, id: Hashable, record: Any) -> Any:
        await self._enter("update", collection, id)
        rows = self._collections.get(collection, {})
        if id not in rows:
            raise RemoteNotFoundError(f"No {collection} record {id!r}", status_code=404)
        if collection != USERS:
            record = replace(record, id=id)
        rows[id] = copy.copy(record)
        return copy.copy(rows[id])

    async def delete(self, collection: str, id: Hashable) -> None:
        await self._enter("delete", collection, id)
        rows = self._collections.get(collection, {})
        if id not in rows:
            raise RemoteNotFoundError(f"No {collection} record {id!r}", status_code=404)
        del rows[id]

    # -- internals -----------------------------------------------------------

    def _put(self, collection: str, record: Any) -> Any:
        rows = self._collections.setdefault(collection, {})
        if collection != USERS:
            if record.id is None:
                record = replace(record, id=self._next_id)
            if isinstance(record.id, int):
                self._next_id = max(self._next_id, record.id + 1)
        rows[record.id] = copy.copy(record)
        return record

    async def _enter(self, operation: str, collection: str, id: Optional[Hashable] = None) -> None:
        self.calls.append((operation, collection, id))
        if self._latency:
            await asyncio.sleep(self._latency)
        if (operation, id) in self._failures or (operation, None) in self._failures:
            LOGGER.debug("Injected failure for %s %s %r", operation, collection, id)
            raise RemoteError(f"{operation} {collection} {id!r} failed", status_code=500)

"""Optimistic removal with a timed commit window and undo.

Records leave the local store before ``stage()`` is called. The buffer then
holds them for ``delay_ms``; when the deadline passes the remote deletes are
issued concurrently. ``undo()`` before the deadline puts the records back at
the head of the store without touching the remote side.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional, Sequence

from tracknest.config import UNDO_DELAY_MS
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.errors import NoRemovalPendingError, RemovalPendingError, RestoreError
from tracknest.gui.viewmodels.collection_store import HEAD, ResourceCollectionStore
from tracknest.gui.viewmodels.signal import Signal

LOGGER = logging.getLogger(__name__)


class PendingRemovalPolicy(Enum):
    """What ``stage()`` does while a batch is already pending."""

    REJECT = "reject"
    FOLD = "fold"


@dataclass
class RemovalBatch:
    records: list[Any]
    deadline: float
    committed: bool = False
    restoring: bool = field(default=False, repr=False)

    @property
    def ids(self) -> list[Hashable]:
        return [record.id for record in self.records]

    def remaining(self, now: float) -> float:
        return max(0.0, self.deadline - now)


class StagedRemovalBuffer:
    """Single-slot holder for one pending :class:`RemovalBatch`.

    Signals:
        staged(batch), committed(ids), commit_failed(ids, errors),
        undone(records, recreated)
    """

    def __init__(
        self,
        gateway: IRemoteSyncGateway,
        collection: str,
        store: ResourceCollectionStore,
        resync: Callable[[], Awaitable[Any]],
        *,
        delay_ms: int = UNDO_DELAY_MS,
        policy: PendingRemovalPolicy = PendingRemovalPolicy.REJECT,
    ) -> None:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must not be negative, got {delay_ms}")
        self._gateway = gateway
        self._collection = collection
        self._store = store
        self._resync = resync
        self._delay = delay_ms / 1000.0
        self._policy = policy

        self._batch: Optional[RemovalBatch] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._commit_task: Optional[asyncio.Task] = None
        self._disposed = False

        self.staged = Signal("removal.staged")
        self.committed = Signal("removal.committed")
        self.commit_failed = Signal("removal.commit_failed")
        self.undone = Signal("removal.undone")

    # -- state ---------------------------------------------------------------

    @property
    def batch(self) -> Optional[RemovalBatch]:
        return self._batch

    @property
    def pending(self) -> bool:
        return self._batch is not None

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    @property
    def policy(self) -> PendingRemovalPolicy:
        return self._policy

    @property
    def pending_ids(self) -> set[Hashable]:
        return set(self._batch.ids) if self._batch is not None else set()

    # -- operations ----------------------------------------------------------

    def stage(self, records: Sequence[Any]) -> RemovalBatch:
        """Hold *records* and arm the commit timer.

        Must run inside the event loop. A second call while a batch is
        pending raises :class:`RemovalPendingError`, unless the policy is
        ``FOLD`` and the pending batch has not started committing, in which
        case the records join it and the single timer restarts.
        """
        if self._disposed:
            raise RuntimeError("StagedRemovalBuffer has been disposed")
        records = list(records)
        if not records:
            raise ValueError("Cannot stage an empty removal")
        loop = asyncio.get_running_loop()

        if self._batch is not None:
            if self._batch.committed or self._policy is PendingRemovalPolicy.REJECT:
                raise RemovalPendingError(
                    f"{len(self._batch.records)} {self._collection} record(s) are still pending removal"
                )
            LOGGER.warning(
                "Folding %d record(s) into the pending %s removal", len(records), self._collection
            )
            self._cancel_timer()
            records = self._batch.records + records

        self._batch = RemovalBatch(records=records, deadline=loop.time() + self._delay)
        self._timer = loop.call_later(self._delay, self._on_deadline)
        LOGGER.info(
            "Staged removal of %s %s; commit in %.1fs", self._batch.ids, self._collection, self._delay
        )
        self.staged.emit(self._batch)
        return self._batch

    async def commit(self) -> bool:
        """Send the pending batch now instead of waiting for the deadline.

        Returns ``True`` when every delete succeeded (or nothing was pending).
        """
        if self._batch is None:
            return True
        if self._batch.committed and self._commit_task is not None:
            return await asyncio.shield(self._commit_task)
        self._cancel_timer()
        return await self._start_commit()

    async def undo(self) -> list[Any]:
        """Restore the pending batch and return the restored records.

        Before the deadline this completes without suspending: the records go
        back to the head of the store and no remote call is made. Once the
        commit has fired, it waits for the deletes to settle and recreates
        whatever is not resident any more; those come back with new ids.
        """
        batch = self._batch
        if batch is None or batch.restoring:
            raise NoRemovalPendingError(f"No {self._collection} removal to undo")

        if not batch.committed:
            self._cancel_timer()
            self._batch = None
            self._store.insert_many(batch.records, HEAD)
            LOGGER.info("Undid removal of %s %s", batch.ids, self._collection)
            self.undone.emit(batch.records, False)
            return list(batch.records)

        batch.restoring = True
        if self._commit_task is not None:
            await asyncio.shield(self._commit_task)
        return await self._recreate(batch)

    def cancel(self) -> None:
        """Disarm the timer and drop the pending batch without any remote call."""
        self._cancel_timer()
        if self._batch is not None and not self._batch.committed:
            LOGGER.debug("Abandoned pending removal of %s", self._batch.ids)
            self._batch = None

    def dispose(self) -> None:
        """Tear down: no timer fires and no in-flight commit touches the store afterwards."""
        self.cancel()
        self._disposed = True
        for signal in (self.staged, self.committed, self.commit_failed, self.undone):
            signal.disconnect_all()

    # -- internals -----------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_deadline(self) -> None:
        self._timer = None
        if self._batch is None or self._batch.committed:
            return
        self._start_commit()

    def _start_commit(self) -> asyncio.Task:
        batch = self._batch
        batch.committed = True
        task = asyncio.get_running_loop().create_task(self._commit(batch))
        self._commit_task = task
        return task

    async def _commit(self, batch: RemovalBatch) -> bool:
        results = await asyncio.gather(
            *(self._gateway.delete(self._collection, record.id) for record in batch.records),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        if self._batch is batch:
            self._batch = None
        if self._commit_task is asyncio.current_task():
            self._commit_task = None
        if self._disposed:
            return not errors

        if not errors:
            LOGGER.info("Committed removal of %s %s", batch.ids, self._collection)
            self.committed.emit(batch.ids)
            return True

        LOGGER.error(
            "%d of %d %s delete(s) failed (%s); resyncing",
            len(errors), len(results), self._collection, errors[0],
        )
        self.commit_failed.emit(batch.ids, errors)
        try:
            await self._resync()
        except Exception as exc:
            # The controller already reported the fetch failure; the store
            # stays at its last snapshot.
            LOGGER.error("Resync after failed commit failed: %s", exc)
        return False

    async def _recreate(self, batch: RemovalBatch) -> list[Any]:
        missing = [record for record in batch.records if record.id not in self._store]
        results = await asyncio.gather(
            *(self._gateway.create(self._collection, record) for record in missing),
            return_exceptions=True,
        )
        restored: list[Any] = []
        lost: list[Any] = []
        for record, result in zip(missing, results):
            if isinstance(result, BaseException):
                LOGGER.error("Could not recreate %s %r: %s", self._collection, record.id, result)
                lost.append(record)
            elif result.id not in self._store:
                restored.append(result)
        if restored and not self._disposed:
            self._store.insert_many(restored, HEAD)
            self.undone.emit(restored, True)
        if lost:
            raise RestoreError(
                f"{len(lost)} {self._collection} record(s) could not be restored", lost=lost
            )
        return restored

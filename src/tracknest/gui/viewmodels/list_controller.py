"""ListController: pure Python, no Qt dependency.

Composes the collection store, the sort/page derivation, the selection and
the staged-removal buffer behind the operations a list view calls. Local
optimistic edits are visible in ``view`` before any network round trip
completes; remote snapshots replace the store wholesale and are reconciled
only against the pending removal.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Hashable, Iterable, Optional, Sequence

from tracknest.config import DEFAULT_PAGE_SIZE, UNDO_DELAY_MS
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.domain.models.query import PageSpec, SortSpec
from tracknest.domain.session import Role
from tracknest.errors import (
    FetchError,
    InvalidSearchFieldError,
    RecordNotFoundError,
    RemovalPendingError,
    RestoreError,
)
from tracknest.errors.handler import ErrorHandler, ErrorSeverity
from tracknest.events.bus import EventBus
from tracknest.events.domain_events import (
    CollectionResyncedEvent,
    RecordsLoadedEvent,
    RemovalCommittedEvent,
    RemovalStagedEvent,
    RemovalUndoneEvent,
    SessionEndedEvent,
)
from tracknest.gui.viewmodels.base import BaseViewModel
from tracknest.gui.viewmodels.collection_store import ResourceCollectionStore
from tracknest.gui.viewmodels.paginator import DerivedView, SortFilterPaginator
from tracknest.gui.viewmodels.selection import SelectionManager
from tracknest.gui.viewmodels.signal import ObservableProperty, Signal
from tracknest.gui.viewmodels.staged_removal import (
    PendingRemovalPolicy,
    RemovalBatch,
    StagedRemovalBuffer,
)


class ListController(BaseViewModel):
    """Client-side controller over one remote collection.

    ``reset_page_on_sort`` is the named policy for whether choosing a sort
    column jumps back to page 1 (off by default: the page is kept and only
    clamped). ``pending_policy`` decides what a second removal does while a
    batch is still waiting for its deadline.
    """

    collection: str = ""
    searchable_fields: tuple[str, ...] = ()

    def __init__(
        self,
        gateway: IRemoteSyncGateway,
        *,
        collection: Optional[str] = None,
        role: Role = Role.USER,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        undo_delay_ms: int = UNDO_DELAY_MS,
        reset_page_on_sort: bool = False,
        pending_policy: PendingRemovalPolicy = PendingRemovalPolicy.REJECT,
        searchable_fields: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__()
        if collection is not None:
            self.collection = collection
        if not self.collection:
            raise ValueError("ListController needs a collection name")
        if searchable_fields is not None:
            self.searchable_fields = tuple(searchable_fields)
        self._gateway = gateway
        self._role = role
        self._event_bus = event_bus
        self._error_handler = error_handler
        self._reset_page_on_sort = reset_page_on_sort
        self._logger = logging.getLogger(__name__)

        self.store = ResourceCollectionStore()
        self.paginator = SortFilterPaginator()
        self.selection = SelectionManager()
        self.removals = StagedRemovalBuffer(
            gateway,
            self.collection,
            self.store,
            self._resync,
            delay_ms=undo_delay_ms,
            policy=pending_policy,
        )

        # Observable properties
        self.sort = ObservableProperty(SortSpec(), "sort")
        self.page = ObservableProperty(PageSpec(page_size=page_size), "page")
        self.view = ObservableProperty(DerivedView(), "view")
        self.loading = ObservableProperty(False)
        self.active_search = ObservableProperty(None)
        self.error_message = ObservableProperty("")

        # Signals
        self.view_changed = Signal("view_changed")
        self.error_occurred = Signal("error_occurred")
        self.removal_staged = Signal("removal_staged")
        self.removal_resolved = Signal("removal_resolved")  # emits (ids, outcome)

        self._detach = [
            self.store.changed.connect(self._on_store_changed),
            self.selection.selection_changed.connect(self._on_selection_changed),
        ]
        self.removals.staged.connect(self._on_removal_staged)
        self.removals.committed.connect(self._on_removal_committed)
        self.removals.commit_failed.connect(self._on_commit_failed)
        self.removals.undone.connect(self._on_removal_undone)

        if event_bus is not None:
            self.subscribe_event(event_bus, SessionEndedEvent, self._on_session_ended)

        self._refresh()

    # -- read access -----------------------------------------------------------

    @property
    def role(self) -> Role:
        return self._role

    @property
    def page_items(self) -> list[Any]:
        return self.view.value.page_items

    @property
    def visible_ids(self) -> list[Hashable]:
        return self.view.value.visible_ids

    @property
    def all_visible_selected(self) -> bool:
        return self.selection.all_selected(self.visible_ids)

    @property
    def pending_removal(self) -> Optional[RemovalBatch]:
        return self.removals.batch

    # -- fetching --------------------------------------------------------------

    async def load(self) -> list[Any]:
        """Replace the store with the full remote collection."""
        records = await self._fetch(
            self._gateway.list(self.collection),
            f"Failed to load {self.collection}. Please try again.",
        )
        self._apply_snapshot(records)
        self.active_search.value = None
        self._publish(RecordsLoadedEvent(collection=self.collection, count=len(self.store)))
        return self.store.records

    async def search(self, field: str, term: str) -> list[Any]:
        """Replace the store with the remote matches for *term* in *field*.

        A blank term behaves like :meth:`clear_search`. A successful search
        is a fresh authoritative snapshot: a pending removal is committed
        straight away instead of waiting for its deadline.
        """
        if field not in self.searchable_fields:
            raise InvalidSearchFieldError(
                f"{self.collection} cannot be searched by {field!r}; "
                f"expected one of {', '.join(self.searchable_fields) or 'nothing'}"
            )
        term = term.strip()
        if not term:
            return await self.clear_search()
        records = await self._fetch(
            self._gateway.search(self.collection, field, term),
            f"Search failed for {field} = {term!r}",
        )
        self._apply_snapshot(records)
        self.active_search.value = (field, term)
        self._publish(
            RecordsLoadedEvent(collection=self.collection, count=len(self.store), query=(field, term))
        )
        await self.removals.commit()
        return self.store.records

    async def clear_search(self) -> list[Any]:
        records = await self._fetch(
            self._gateway.list(self.collection),
            f"Failed to load {self.collection}. Please try again.",
        )
        self._apply_snapshot(records)
        self.active_search.value = None
        self._publish(RecordsLoadedEvent(collection=self.collection, count=len(self.store)))
        await self.removals.commit()
        return self.store.records

    # -- sorting and paging ------------------------------------------------------

    def set_sort(self, key: str) -> SortSpec:
        """Sort by *key*; choosing the current key again flips the direction.

        The view is derived from the new order before it is stored, so a
        failing sort leaves the previous order and view in place.
        """
        candidate = self.sort.value.toggled(key)
        page = self.page.value
        if self._reset_page_on_sort:
            page = replace(page, current_page=1)
        view = self.paginator.derive(self.store.records, candidate, page)
        self.sort.value = candidate
        if view.current_page != self.view.value.current_page:
            self.selection.clear()
        self._show(view)
        return candidate

    def set_page(self, number: int) -> bool:
        """Show page *number*, clamped to the valid range.

        Returns ``False`` when the clamped page is the current one. Changing
        page clears the selection.
        """
        return self._go_to(number)

    def next_page(self) -> bool:
        return self._go_to(self.view.value.current_page + 1)

    def previous_page(self) -> bool:
        return self._go_to(self.view.value.current_page - 1)

    def first_page(self) -> bool:
        return self._go_to(1)

    def last_page(self) -> bool:
        return self._go_to(self.view.value.total_pages)

    # -- selection ---------------------------------------------------------------

    def select(self, record_id: Hashable) -> bool:
        """Toggle *record_id*, which must be on the current page."""
        if record_id not in self.visible_ids:
            raise RecordNotFoundError(f"{record_id!r} is not on the current page")
        return self.selection.toggle(record_id)

    def select_all_visible(self, checked: bool) -> None:
        if checked:
            self.selection.select_all(self.visible_ids)
        else:
            self.selection.clear()

    # -- removal ---------------------------------------------------------------

    def remove_one(self, record_id: Hashable) -> RemovalBatch:
        """Drop *record_id* locally and stage its remote delete."""
        if record_id not in self.store:
            raise RecordNotFoundError(f"No {self.collection} record with id {record_id!r}")
        self._check_can_remove([record_id])
        return self._stage([record_id])

    def remove_selected(self) -> Optional[RemovalBatch]:
        """Stage removal of the checked rows on the current page.

        Returns ``None`` when nothing visible is checked.
        """
        self._check_can_bulk_remove()
        visible = set(self.visible_ids)
        ids = [record_id for record_id in self.selection.selected_ids if record_id in visible]
        if not ids:
            self._logger.warning("No selected %s on the current page to delete", self.collection)
            return None
        self._check_can_remove(ids)
        return self._stage(ids)

    async def undo(self) -> list[Any]:
        """Undo the pending removal; see :meth:`StagedRemovalBuffer.undo`."""
        try:
            return await self.removals.undo()
        except RestoreError as exc:
            self._report(exc, f"Could not restore {len(exc.lost)} {self.collection} record(s)")
            raise

    async def flush(self) -> bool:
        """Commit a pending removal now."""
        return await self.removals.commit()

    # -- editing ---------------------------------------------------------------

    async def save(self, record: Any) -> Any:
        """Create *record*, or update it when its id is resident.

        The store only changes once the server has confirmed; created records
        are appended, updated ones replaced in place.
        """
        existing = record.id is not None and record.id in self.store
        try:
            if existing:
                saved = await self._gateway.update(self.collection, record.id, record)
            else:
                saved = await self._gateway.create(self.collection, record)
        except Exception as exc:
            self._report(exc, f"Error saving {self.collection} record")
            raise
        if existing:
            self.store.update(saved)
        elif saved.id in self.store:
            self.store.update(saved)
        else:
            self.store.append(saved)
        return saved

    # -- lifecycle -------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel the removal timer and detach from every collaborator."""
        if self.disposed:
            return
        self.removals.dispose()
        for detach in self._detach:
            detach()
        for signal in (self.view_changed, self.error_occurred, self.removal_staged, self.removal_resolved):
            signal.disconnect_all()
        super().dispose()

    # -- hooks for resource-specific controllers -------------------------------

    def _check_can_remove(self, ids: Sequence[Hashable]) -> None:
        """Raise when the current role may not remove *ids*."""

    def _check_can_bulk_remove(self) -> None:
        """Raise when the current role may not use bulk removal."""

    # -- internals -------------------------------------------------------------

    def _stage(self, ids: Sequence[Hashable]) -> RemovalBatch:
        batch = self.removals.batch
        if batch is not None and (
            batch.committed or self.removals.policy is PendingRemovalPolicy.REJECT
        ):
            self._logger.warning(
                "Rejected removal of %s: %s %s still pending", list(ids), self.collection, batch.ids
            )
            raise RemovalPendingError(
                f"Wait for the pending {self.collection} removal to finish or undo it first"
            )
        removed = self.store.remove(ids)
        return self.removals.stage(removed)

    async def _fetch(self, call, message: str) -> list[Any]:
        self.loading.value = True
        try:
            return list(await call)
        except Exception as exc:
            self._report(exc, message)
            raise FetchError(message) from exc
        finally:
            self.loading.value = False

    def _apply_snapshot(self, records: Iterable[Any]) -> None:
        pending = self.removals.pending_ids
        self.store.replace_all(record for record in records if record.id not in pending)

    async def _resync(self) -> None:
        await self.load()
        self._publish(CollectionResyncedEvent(collection=self.collection, reason="commit failed"))

    def _go_to(self, number: int) -> bool:
        current = self.page.value
        target = replace(current, current_page=number).clamped(len(self.store))
        if target.current_page == self.view.value.current_page:
            return False
        self.page.value = target
        self.selection.clear()
        self._refresh()
        return True

    def _refresh(self) -> None:
        self._show(self.paginator.derive(self.store.records, self.sort.value, self.page.value))

    def _show(self, view: DerivedView) -> None:
        if view.current_page != self.page.value.current_page:
            self.page.value = replace(self.page.value, current_page=view.current_page)
        self.view.value = view
        self.view_changed.emit(view)

    def _report(self, exc: Exception, message: str) -> None:
        self.error_message.value = message
        if self._error_handler is not None:
            self._error_handler.handle(
                exc, ErrorSeverity.ERROR, {"collection": self.collection, "message": message}
            )
        else:
            self._logger.error("%s: %s", message, exc)
        self.error_occurred.emit(message)

    def _publish(self, event) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    # -- signal handlers -------------------------------------------------------

    def _on_store_changed(self) -> None:
        self.selection.prune(self.store.ids)
        self._refresh()

    def _on_selection_changed(self, _selected: list) -> None:
        # Rows re-render their checkbox from the view.
        self.view_changed.emit(self.view.value)

    def _on_removal_staged(self, batch: RemovalBatch) -> None:
        self.removal_staged.emit(batch)
        self._publish(
            RemovalStagedEvent(collection=self.collection, record_ids=batch.ids, deadline=batch.deadline)
        )

    def _on_removal_committed(self, ids: list) -> None:
        self.removal_resolved.emit(ids, "committed")
        self._publish(RemovalCommittedEvent(collection=self.collection, record_ids=list(ids)))

    def _on_commit_failed(self, ids: list, errors: list) -> None:
        self._report(errors[0], f"Failed to delete {len(errors)} {self.collection} record(s); reloading")
        self.removal_resolved.emit(ids, "failed")

    def _on_removal_undone(self, records: list, recreated: bool) -> None:
        ids = [record.id for record in records]
        self.removal_resolved.emit(ids, "undone")
        self._publish(RemovalUndoneEvent(collection=self.collection, record_ids=ids, recreated=recreated))

    def _on_session_ended(self, _event: SessionEndedEvent) -> None:
        self.dispose()

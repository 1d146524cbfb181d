"""ListController behaviour over the in-memory gateway."""

import asyncio

import pytest

from tracknest.config import ENTRIES
from tracknest.domain.models.core import Entry
from tracknest.domain.models.query import SortDirection
from tracknest.errors import (
    FetchError,
    InvalidSearchFieldError,
    RecordNotFoundError,
    RemoteError,
    RemovalPendingError,
    RestoreError,
)
from tracknest.events.bus import EventBus
from tracknest.events.domain_events import (
    CollectionResyncedEvent,
    ListEvent,
    RecordsLoadedEvent,
    RemovalCommittedEvent,
    RemovalStagedEvent,
    RemovalUndoneEvent,
    SessionEndedEvent,
)
from tracknest.gui.viewmodels.resource_lists import EntryListController
from tracknest.infrastructure.memory_gateway import InMemoryRemoteSyncGateway

DELAY_MS = 20


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def published(bus):
    events = []
    bus.subscribe(ListEvent, events.append)
    return events


@pytest.fixture
def controller(gateway, bus):
    ctrl = EntryListController(gateway, event_bus=bus, undo_delay_ms=DELAY_MS)
    yield ctrl
    ctrl.dispose()


@pytest.fixture
def abc_controller(make_entry):
    remote = InMemoryRemoteSyncGateway()
    remote.seed(ENTRIES, [make_entry(1, "A"), make_entry(2, "B"), make_entry(3, "C")])
    ctrl = EntryListController(remote, undo_delay_ms=DELAY_MS)
    yield ctrl, remote
    ctrl.dispose()


def _deletes(remote):
    return [record_id for op, _, record_id in remote.calls if op == "delete"]


async def _past_deadline():
    await asyncio.sleep(DELAY_MS / 1000 * 5)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_load_fills_the_first_page(controller, published):
    loading = []
    controller.loading.changed.connect(lambda new, old: loading.append(new))

    await controller.load()

    view = controller.view.value
    assert view.visible_ids == list(range(1, 11))
    assert view.total_pages == 2
    assert view.range_label == "Showing rows 1 - 10 of 15"
    assert loading == [True, False]
    assert isinstance(published[-1], RecordsLoadedEvent)
    assert published[-1].count == 15


@pytest.mark.asyncio
async def test_failed_load_keeps_last_snapshot(controller, gateway):
    await controller.load()
    messages = []
    controller.error_occurred.connect(messages.append)
    gateway.fail_on("list")

    with pytest.raises(FetchError):
        await controller.load()

    assert len(controller.store) == 15
    assert controller.error_message.value == "Failed to load entries. Please try again."
    assert messages == ["Failed to load entries. Please try again."]
    assert controller.loading.value is False


@pytest.mark.asyncio
async def test_search_replaces_the_store(controller):
    await controller.load()

    await controller.search("title", "entry 1")

    assert controller.store.ids == [10, 11, 12, 13, 14, 15]
    assert controller.active_search.value == ("title", "entry 1")


@pytest.mark.asyncio
async def test_search_on_unsupported_field_never_reaches_the_gateway(controller, gateway):
    with pytest.raises(InvalidSearchFieldError):
        await controller.search("created_by", "me")

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_blank_search_term_clears_the_search(controller, gateway):
    await controller.search("title", "entry 1")

    await controller.search("title", "   ")

    assert len(controller.store) == 15
    assert controller.active_search.value is None
    assert gateway.calls[-1][0] == "list"


@pytest.mark.asyncio
async def test_search_commits_a_pending_removal_immediately(controller, gateway):
    await controller.load()
    controller.remove_one(1)

    await controller.search("title", "Entry 0")

    assert _deletes(gateway) == [1]
    assert controller.pending_removal is None
    assert controller.store.ids == list(range(2, 10))


@pytest.mark.asyncio
async def test_clear_search_commits_a_pending_removal(controller, gateway):
    await controller.search("title", "Entry 0")
    controller.remove_one(3)

    await controller.clear_search()

    assert _deletes(gateway) == [3]
    assert 3 not in controller.store
    assert len(controller.store) == 14


@pytest.mark.asyncio
async def test_failed_search_leaves_the_pending_timer_alone(controller, gateway):
    await controller.load()
    controller.remove_one(1)
    gateway.fail_on("search")

    with pytest.raises(FetchError):
        await controller.search("title", "x")

    assert controller.error_message.value == "Search failed for title = 'x'"
    assert controller.removals.timer_armed
    assert len(controller.store) == 14
    await _past_deadline()
    assert _deletes(gateway) == [1]


@pytest.mark.asyncio
async def test_load_during_pending_window_filters_staged_ids(controller, gateway):
    await controller.load()
    controller.remove_one(4)

    await controller.load()

    assert 4 not in controller.store
    assert controller.removals.timer_armed


# ---------------------------------------------------------------------------
# Sorting and paging
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_same_sort_key_twice_flips_direction(controller):
    await controller.load()

    controller.set_sort("title")
    ascending = list(controller.visible_ids)
    spec = controller.set_sort("title")

    assert spec.direction is SortDirection.DESC
    assert controller.visible_ids[0] == 15
    assert ascending[0] == 1


@pytest.mark.asyncio
async def test_sort_by_group_then_remove_drops_the_row(make_entry):
    from tracknest.domain.models.core import Group

    remote = InMemoryRemoteSyncGateway()
    remote.seed(
        ENTRIES,
        [
            make_entry(1, "A", group=Group(id=11, name="Runners")),
            make_entry(2, "B", group=Group(id=12, name="Diary")),
            make_entry(3, "C", group=Group(id=13, name="keto")),
        ],
    )
    ctrl = EntryListController(remote, undo_delay_ms=DELAY_MS)
    try:
        await ctrl.load()

        ctrl.set_sort("group")
        assert ctrl.visible_ids == [2, 3, 1]

        ctrl.remove_one(1)
        assert ctrl.visible_ids == [2, 3]
        assert [r.id for r in ctrl.page_items] == ctrl.store.ids
    finally:
        ctrl.dispose()


@pytest.mark.asyncio
async def test_failed_sort_keeps_previous_order_and_view(abc_controller, monkeypatch):
    ctrl, _remote = abc_controller
    await ctrl.load()
    ctrl.set_sort("title")
    before = ctrl.sort.value

    def broken_derive(*_args):
        raise TypeError("unorderable")

    with monkeypatch.context() as patch:
        patch.setattr(ctrl.paginator, "derive", broken_derive)
        with pytest.raises(TypeError):
            ctrl.set_sort("description")

    assert ctrl.sort.value == before
    ctrl.remove_one(2)
    assert ctrl.visible_ids == [1, 3]


@pytest.mark.asyncio
async def test_sort_keeps_the_page_by_default(controller):
    await controller.load()
    controller.set_page(2)

    controller.set_sort("title")

    assert controller.view.value.current_page == 2


@pytest.mark.asyncio
async def test_sort_can_reset_the_page(gateway):
    ctrl = EntryListController(gateway, reset_page_on_sort=True)
    await ctrl.load()
    ctrl.set_page(2)

    ctrl.set_sort("title")

    assert ctrl.view.value.current_page == 1
    ctrl.dispose()


@pytest.mark.asyncio
async def test_set_page_is_clamped(controller):
    await controller.load()

    assert controller.set_page(99) is True
    assert controller.view.value.current_page == 2
    assert controller.set_page(99) is False
    assert controller.set_page(0) is True
    assert controller.view.value.current_page == 1


@pytest.mark.asyncio
async def test_page_helpers(controller):
    await controller.load()

    assert controller.next_page() is True
    assert controller.next_page() is False
    assert controller.previous_page() is True
    assert controller.last_page() is True
    assert controller.first_page() is True
    assert controller.view.value.current_page == 1


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_select_all_selects_only_the_visible_page(controller):
    await controller.load()

    controller.select_all_visible(True)

    assert controller.selection.selected_ids == list(range(1, 11))
    assert controller.all_visible_selected

    controller.set_page(2)

    assert controller.selection.selected_ids == []


@pytest.mark.asyncio
async def test_select_off_page_id_raises(controller):
    await controller.load()

    with pytest.raises(RecordNotFoundError):
        controller.select(12)

    assert controller.select(3) is True
    assert controller.select(3) is False


@pytest.mark.asyncio
async def test_unchecking_select_all_clears(controller):
    await controller.load()
    controller.select_all_visible(True)

    controller.select_all_visible(False)

    assert not controller.selection


# ---------------------------------------------------------------------------
# Removal
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_one_is_visible_without_awaiting(controller, published):
    await controller.load()
    staged = []
    controller.removal_staged.connect(staged.append)

    batch = controller.remove_one(2)

    assert 2 not in controller.visible_ids
    assert controller.view.value.total_count == 14
    assert staged == [batch]
    assert isinstance(published[-1], RemovalStagedEvent)
    assert published[-1].record_ids == [2]


@pytest.mark.asyncio
async def test_remove_unknown_id_raises(controller):
    await controller.load()

    with pytest.raises(RecordNotFoundError):
        controller.remove_one(404)


@pytest.mark.asyncio
async def test_undo_restores_at_head(abc_controller):
    ctrl, remote = abc_controller
    await ctrl.load()
    ctrl.remove_one(2)

    await ctrl.undo()

    assert ctrl.store.ids == [2, 1, 3]
    await _past_deadline()
    assert _deletes(remote) == []


@pytest.mark.asyncio
async def test_commit_finalizes(abc_controller):
    ctrl, remote = abc_controller
    await ctrl.load()
    resolved = []
    ctrl.removal_resolved.connect(lambda ids, outcome: resolved.append((ids, outcome)))
    ctrl.remove_one(2)

    await _past_deadline()
    await ctrl.load()

    assert _deletes(remote) == [2]
    assert ctrl.store.ids == [1, 3]
    assert resolved == [([2], "committed")]


@pytest.mark.asyncio
async def test_second_removal_while_pending_is_rejected_untouched(controller, gateway):
    await controller.load()
    controller.remove_one(1)

    with pytest.raises(RemovalPendingError):
        controller.remove_one(2)

    assert 2 in controller.store
    await _past_deadline()
    assert _deletes(gateway) == [1]


@pytest.mark.asyncio
async def test_remove_selected_acts_on_checked_visible_rows(controller, published):
    await controller.load()
    controller.select(1)
    controller.select(5)

    batch = controller.remove_selected()

    assert batch.ids == [1, 5]
    assert controller.selection.selected_ids == []
    assert 1 not in controller.store and 5 not in controller.store


@pytest.mark.asyncio
async def test_remove_selected_with_nothing_checked_returns_none(controller):
    await controller.load()

    assert controller.remove_selected() is None
    assert controller.pending_removal is None


@pytest.mark.asyncio
async def test_bulk_partial_failure_resyncs_to_a_fresh_load(controller, gateway, published):
    await controller.load()
    gateway.fail_on("delete", 2)
    resolved = []
    controller.removal_resolved.connect(lambda ids, outcome: resolved.append(outcome))
    controller.select(1)
    controller.select(2)
    controller.remove_selected()

    await asyncio.sleep(0.1)

    fresh = [record.id for record in await gateway.list(ENTRIES)]
    assert controller.store.ids == fresh
    assert 1 not in fresh and 2 in fresh
    assert resolved == ["failed"]
    assert controller.error_message.value.startswith("Failed to delete 1 entries record(s)")
    assert any(isinstance(event, CollectionResyncedEvent) for event in published)


@pytest.mark.asyncio
async def test_undo_after_commit_fired_recreates(make_entry, bus, published):
    remote = InMemoryRemoteSyncGateway(latency=0.05)
    remote.seed(ENTRIES, [make_entry(1, "A"), make_entry(2, "B")])
    ctrl = EntryListController(remote, event_bus=bus, undo_delay_ms=10)
    await ctrl.load()
    ctrl.remove_one(2)
    await asyncio.sleep(0.03)

    restored = await ctrl.undo()

    assert [record.title for record in restored] == ["B"]
    assert ctrl.store.ids[0] == restored[0].id
    assert [type(event) for event in published[-2:]] == [RemovalCommittedEvent, RemovalUndoneEvent]
    assert published[-1].recreated is True
    ctrl.dispose()


@pytest.mark.asyncio
async def test_failed_recreate_is_reported(make_entry):
    remote = InMemoryRemoteSyncGateway(latency=0.05)
    remote.seed(ENTRIES, [make_entry(1, "A"), make_entry(2, "B")])
    remote.fail_on("create")
    ctrl = EntryListController(remote, undo_delay_ms=10)
    await ctrl.load()
    ctrl.remove_one(2)
    await asyncio.sleep(0.03)

    with pytest.raises(RestoreError):
        await ctrl.undo()

    assert ctrl.error_message.value == "Could not restore 1 entries record(s)"
    ctrl.dispose()


@pytest.mark.asyncio
async def test_flush_commits_now(controller, gateway):
    await controller.load()
    controller.remove_one(7)

    assert await controller.flush() is True
    assert _deletes(gateway) == [7]


# ---------------------------------------------------------------------------
# Editing and lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_appends_created_records_after_confirmation(controller):
    await controller.load()

    saved = await controller.save(Entry(id=None, title="Brand new"))

    assert saved.id is not None
    assert controller.store.ids[-1] == saved.id


@pytest.mark.asyncio
async def test_save_replaces_existing_in_place(controller):
    await controller.load()

    await controller.save(Entry(id=3, title="Edited"))

    assert controller.store.ids.index(3) == 2
    assert controller.store.get(3).title == "Edited"


@pytest.mark.asyncio
async def test_failed_save_leaves_store_untouched(controller, gateway):
    await controller.load()
    gateway.fail_on("create")

    with pytest.raises(RemoteError):
        await controller.save(Entry(id=None, title="Nope"))

    assert len(controller.store) == 15
    assert controller.error_message.value == "Error saving entries record"


@pytest.mark.asyncio
async def test_dispose_cancels_pending_removal(controller, gateway):
    await controller.load()
    controller.remove_one(1)

    controller.dispose()

    await _past_deadline()
    assert _deletes(gateway) == []
    assert controller.disposed


@pytest.mark.asyncio
async def test_session_end_disposes_the_controller(controller, gateway, bus):
    await controller.load()
    controller.remove_one(1)

    bus.publish(SessionEndedEvent(username="someone"))

    assert controller.disposed
    await _past_deadline()
    assert _deletes(gateway) == []

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for table model tests", exc_type=ImportError)
pytest.importorskip("PySide6.QtCore", reason="QtCore not available", exc_type=ImportError)

from PySide6.QtCore import QCoreApplication, Qt

from tracknest.gui.ui.models.record_table_model import RecordTableModel
from tracknest.gui.viewmodels.resource_lists import EntryListController

COLUMNS = [("id", "ID"), ("title", "Title"), ("type", "Type")]


@pytest.fixture(scope="module")
def qapp() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def controller(gateway, entries):
    ctrl = EntryListController(gateway)
    ctrl.store.replace_all(entries)
    yield ctrl
    ctrl.dispose()


@pytest.fixture
def model(qapp, controller):
    return RecordTableModel(controller, COLUMNS)


def test_rows_follow_the_current_page(model, controller):
    assert model.rowCount() == 10
    assert model.columnCount() == 3
    assert model.data(model.index(0, 1)) == "Entry 01"
    assert model.data(model.index(0, 2)) == "Diet"
    assert model.data(model.index(0, 0), Qt.ItemDataRole.UserRole) == 1

    controller.set_page(2)

    assert model.rowCount() == 5
    assert model.data(model.index(0, 0)) == "11"


def test_view_change_resets_the_model(model, controller):
    resets = []
    labels = []
    model.modelReset.connect(lambda: resets.append(1))
    model.rangeLabelChanged.connect(labels.append)

    controller.store.remove([1])

    assert resets == [1]
    assert labels == ["Showing rows 1 - 10 of 14"]


def test_first_column_is_checkable_and_bound_to_selection(model, controller):
    index = model.index(2, 0)
    assert model.flags(index) & Qt.ItemFlag.ItemIsUserCheckable
    assert not model.flags(model.index(2, 1)) & Qt.ItemFlag.ItemIsUserCheckable

    assert model.setData(index, Qt.CheckState.Checked, Qt.ItemDataRole.CheckStateRole)

    assert controller.selection.selected_ids == [3]
    assert model.data(model.index(2, 0), Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Checked

    model.setData(model.index(2, 0), Qt.CheckState.Unchecked, Qt.ItemDataRole.CheckStateRole)
    assert controller.selection.selected_ids == []


def test_header_shows_sort_direction(model, controller):
    assert model.headerData(1, Qt.Orientation.Horizontal) == "Title"

    model.sort(1, Qt.SortOrder.AscendingOrder)
    assert model.headerData(1, Qt.Orientation.Horizontal) == "Title ▲"
    assert model.sort_indicator() == (1, Qt.SortOrder.AscendingOrder)

    model.sort(1, Qt.SortOrder.DescendingOrder)
    assert model.headerData(1, Qt.Orientation.Horizontal) == "Title ▼"
    assert model.data(model.index(0, 1)) == "Entry 15"


def test_sort_on_new_column_honours_requested_order(model, controller):
    model.sort(1, Qt.SortOrder.DescendingOrder)

    assert controller.sort.value.key == "title"
    assert controller.sort.value.descending


def test_controller_errors_are_forwarded(model, controller):
    messages = []
    model.errorRaised.connect(messages.append)

    controller.error_occurred.emit("Failed to load entries. Please try again.")

    assert messages == ["Failed to load entries. Please try again."]

"""Table model exposing a list controller's current page to Qt item views."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt, Signal

from ....domain.models.core import field_value
from ...viewmodels.list_controller import ListController
from ...viewmodels.paginator import DerivedView

logger = logging.getLogger(__name__)

ASCENDING_MARK = " ▲"
DESCENDING_MARK = " ▼"


class RecordTableModel(QAbstractTableModel):
    """Render ``controller.view`` as rows; the first column carries the checkbox.

    The model never holds records of its own. Every ``view_changed`` from
    the controller resets it, and edits flow back through controller
    operations (``select``, ``set_sort``).
    """

    # Qt Signals use camelCase by convention (noqa: N815)
    errorRaised = Signal(str)  # noqa: N815
    rangeLabelChanged = Signal(str)  # noqa: N815

    def __init__(
        self,
        controller: ListController,
        columns: Sequence[tuple[str, str]],
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        if not columns:
            raise ValueError("RecordTableModel needs at least one column")
        self._controller = controller
        self._columns = list(columns)
        self._view: DerivedView = controller.view.value
        controller.view_changed.connect(self._on_view_changed)
        controller.error_occurred.connect(self.errorRaised.emit)

    @property
    def controller(self) -> ListController:
        return self._controller

    def column_key(self, column: int) -> str:
        return self._columns[column][0]

    def record_at(self, row: int) -> Any:
        return self._view.page_items[row]

    def sort_indicator(self) -> tuple[int, Qt.SortOrder]:
        """Return ``(column, order)`` for ``QHeaderView.setSortIndicator``; -1 when unsorted."""
        sort = self._controller.sort.value
        keys = [key for key, _ in self._columns]
        column = keys.index(sort.key) if sort.key in keys else -1
        order = Qt.SortOrder.DescendingOrder if sort.descending else Qt.SortOrder.AscendingOrder
        return column, order

    # ------------------------------------------------------------------
    # Qt overrides
    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802  # Qt override
        if parent.isValid():
            return 0
        return len(self._view.page_items)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802  # Qt override
        if parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid() or not 0 <= index.row() < len(self._view.page_items):
            return None
        record = self._view.page_items[index.row()]
        if role == Qt.ItemDataRole.CheckStateRole and index.column() == 0:
            selected = self._controller.selection.is_selected(record.id)
            return Qt.CheckState.Checked if selected else Qt.CheckState.Unchecked
        if role == Qt.ItemDataRole.DisplayRole:
            value = field_value(record, self.column_key(index.column()))
            if value is None:
                return ""
            if isinstance(value, datetime):
                return value.strftime("%Y-%m-%d")
            return str(value)
        if role == Qt.ItemDataRole.UserRole:
            return record.id
        return None

    def setData(  # noqa: N802  # Qt override
        self, index: QModelIndex, value: Any, role: int = Qt.ItemDataRole.EditRole
    ) -> bool:
        if role != Qt.ItemDataRole.CheckStateRole or index.column() != 0 or not index.isValid():
            return False
        record = self.record_at(index.row())
        wanted = Qt.CheckState(value) == Qt.CheckState.Checked
        if wanted != self._controller.selection.is_selected(record.id):
            self._controller.select(record.id)
        return True

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        flags = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if index.column() == 0:
            flags |= Qt.ItemFlag.ItemIsUserCheckable
        return flags

    def headerData(  # noqa: N802  # Qt override
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ) -> Any:
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == Qt.Orientation.Vertical:
            return str(section + 1)
        if not 0 <= section < len(self._columns):
            return None
        key, title = self._columns[section]
        sort = self._controller.sort.value
        if sort.key == key:
            return title + (DESCENDING_MARK if sort.descending else ASCENDING_MARK)
        return title

    def sort(self, column: int, order: Qt.SortOrder = Qt.SortOrder.AscendingOrder) -> None:
        """Route header clicks to ``set_sort`` and land on the requested order."""
        if not 0 <= column < len(self._columns):
            return
        key = self.column_key(column)
        spec = self._controller.set_sort(key)
        if spec.descending != (order == Qt.SortOrder.DescendingOrder):
            self._controller.set_sort(key)
        self.headerDataChanged.emit(Qt.Orientation.Horizontal, 0, len(self._columns) - 1)

    # ------------------------------------------------------------------
    # Controller callbacks
    # ------------------------------------------------------------------
    def _on_view_changed(self, view: DerivedView) -> None:
        label_changed = view.range_label != self._view.range_label
        self.beginResetModel()
        self._view = view
        self.endResetModel()
        if label_changed:
            self.rangeLabelChanged.emit(view.range_label)

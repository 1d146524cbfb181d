"""Selection of record ids, scoped to the rows currently on screen."""

from __future__ import annotations

from typing import Hashable, Iterable

from tracknest.gui.viewmodels.signal import Signal


class SelectionManager:
    """Insertion-ordered set of selected ids.

    ``selection_changed`` carries the selected ids as a list and fires only
    when membership actually changes.
    """

    def __init__(self) -> None:
        self._selected: dict[Hashable, None] = {}
        self.selection_changed = Signal("selection_changed")

    @property
    def selected_ids(self) -> list[Hashable]:
        return list(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __bool__(self) -> bool:
        return bool(self._selected)

    def is_selected(self, record_id: Hashable) -> bool:
        return record_id in self._selected

    def toggle(self, record_id: Hashable) -> bool:
        """Flip *record_id*; return whether it is now selected."""
        if record_id in self._selected:
            del self._selected[record_id]
            now_selected = False
        else:
            self._selected[record_id] = None
            now_selected = True
        self._notify()
        return now_selected

    def select_all(self, visible_ids: Iterable[Hashable]) -> None:
        """Select exactly *visible_ids*, dropping anything selected off-page."""
        self._replace(dict.fromkeys(visible_ids))

    def clear(self) -> None:
        self._replace({})

    def all_selected(self, visible_ids: Iterable[Hashable]) -> bool:
        """State of the "select all" checkbox for the given page."""
        visible = list(visible_ids)
        return bool(visible) and all(record_id in self._selected for record_id in visible)

    def prune(self, present_ids: Iterable[Hashable]) -> None:
        """Forget ids that are no longer present."""
        present = set(present_ids)
        self._replace({record_id: None for record_id in self._selected if record_id in present})

    def _replace(self, selected: dict[Hashable, None]) -> None:
        if list(selected) == list(self._selected):
            return
        self._selected = selected
        self._notify()

    def _notify(self) -> None:
        self.selection_changed.emit(self.selected_ids)

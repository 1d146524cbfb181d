"""Observer callbacks and observable values for the list controllers.

Everything here runs on the controller's event loop, so nothing is locked.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

_logger = logging.getLogger(__name__)


class Signal:
    """Named callback list, Qt-free.

    A failing handler is logged with its traceback and the remaining
    handlers still run, matching ``EventBus.publish``.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: list[Callable] = []

    def __repr__(self) -> str:
        return f"<Signal {self.name or 'anonymous'} handlers={len(self._handlers)}>"

    def connect(self, handler: Callable) -> Callable[[], None]:
        """Add *handler* once and return a callable that detaches it again."""
        if handler not in self._handlers:
            self._handlers.append(handler)

        def detach() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return detach

    def disconnect(self, handler: Callable) -> None:
        self._handlers.remove(handler)

    def disconnect_all(self) -> None:
        self._handlers.clear()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Handler %r for signal %s failed", handler, self.name or "?")

    @property
    def handler_count(self) -> int:
        return len(self._handlers)


class ObservableProperty:
    """Value holder that emits ``changed(new, old)`` when set to an unequal value."""

    def __init__(self, initial_value: Any = None, name: str = "") -> None:
        self._value = initial_value
        self.changed = Signal(name)

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._value != new_value:
            old_value = self._value
            self._value = new_value
            self.changed.emit(new_value, old_value)


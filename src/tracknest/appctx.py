"""Application-wide context shared by the CLI and the Qt views."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

from .di import Container, bootstrap
from .domain.gateway import IRemoteSyncGateway
from .domain.session import Role, Session
from .errors.handler import ErrorHandler
from .events.bus import EventBus
from .events.domain_events import SessionEndedEvent
from .gui.viewmodels.resource_lists import CONTROLLER_TYPES, UserListController
from .gui.viewmodels.staged_removal import PendingRemovalPolicy
from .settings.manager import SettingsManager

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .gui.viewmodels.list_controller import ListController

LOGGER = logging.getLogger(__name__)


def _create_di_container(
    settings_path: Optional[Path] = None,
    gateway: Optional[IRemoteSyncGateway] = None,
) -> Container:
    container = Container()
    bootstrap(container, settings_path=settings_path, gateway=gateway)
    return container


@dataclass
class AppContext:
    """Container object shared across views.

    The session is restored from ``session.token`` in the settings file when
    none is given. Gateways live in a per-session DI scope, so signing in or
    out swaps the bearer token for every controller created afterwards.
    """

    container: Container = field(default_factory=_create_di_container)
    session: Optional[Session] = None

    def __post_init__(self) -> None:
        self.settings: SettingsManager = self.container.resolve(SettingsManager)
        self.event_bus: EventBus = self.container.resolve(EventBus)
        self.error_handler: ErrorHandler = self.container.resolve(ErrorHandler)
        if self.session is None:
            token = self.settings.get("session.token")
            if token:
                self.session = Session.from_token(token)
        self._scope = self.container.create_scope()

    @property
    def gateway(self) -> IRemoteSyncGateway:
        return self._scope.resolve(IRemoteSyncGateway)

    def sign_in(self, session: Session, *, remember: bool = True) -> None:
        """Adopt *session*; later gateways carry its bearer token."""

        self._scope.dispose()
        self.session = session
        if remember:
            self.settings.set("session.token", session.token)
        self._scope = self.container.create_scope()
        LOGGER.info("Signed in as %s (%s)", session.username, session.role.value)

    def create_controller(self, collection: str, **overrides: Any) -> "ListController":
        """Build the list controller for *collection* from the stored settings."""

        try:
            controller_type = CONTROLLER_TYPES[collection]
        except KeyError:
            raise ValueError(
                f"Unknown collection {collection!r}; expected one of {', '.join(CONTROLLER_TYPES)}"
            ) from None
        session = self.session
        options: dict[str, Any] = {
            "role": session.role if session is not None else Role.USER,
            "event_bus": self.event_bus,
            "error_handler": self.error_handler,
            "page_size": self.settings.get("lists.page_size"),
            "undo_delay_ms": self.settings.get("lists.undo_delay_ms"),
            "reset_page_on_sort": self.settings.get("lists.reset_page_on_sort"),
            "pending_policy": PendingRemovalPolicy(self.settings.get("lists.pending_removal_policy")),
        }
        if controller_type is UserListController:
            options["current_username"] = session.username if session is not None else None
        options.update(overrides)
        return controller_type(self.gateway, **options)

    async def logout(self) -> None:
        """Dispose every live controller and forget the stored token."""

        username = self.session.username if self.session is not None else ""
        self.event_bus.publish(SessionEndedEvent(username=username))
        await self.gateway.close()
        self._scope.dispose()
        self._scope = self.container.create_scope()
        self.session = None
        self.settings.set("session.token", None)
        LOGGER.info("Signed out %s", username or "anonymous session")

    async def close(self) -> None:
        await self.gateway.close()

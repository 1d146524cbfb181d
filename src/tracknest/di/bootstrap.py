import logging
from pathlib import Path
from typing import Optional

from .container import Container
from .lifetime import Lifetime
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.domain.session import Session
from tracknest.errors.handler import ErrorHandler
from tracknest.events.bus import EventBus
from tracknest.infrastructure.http_gateway import HttpRemoteSyncGateway
from tracknest.settings.manager import SettingsManager


def bootstrap(
    container: Container,
    *,
    settings_path: Optional[Path] = None,
    gateway: Optional[IRemoteSyncGateway] = None,
) -> None:
    """Register all application services in the DI container.

    Passing *gateway* pins that instance (demo mode, tests); otherwise every
    scope gets its own HTTP gateway built from the stored session token.
    """

    def create_settings(_c: Container) -> SettingsManager:
        manager = SettingsManager(settings_path)
        manager.load()
        return manager

    container.register_factory(SettingsManager, create_settings, Lifetime.SINGLETON)
    container.register_singleton(EventBus, EventBus)
    container.register_factory(
        ErrorHandler,
        lambda c: ErrorHandler(logging.getLogger("tracknest"), c.resolve(EventBus)),
        Lifetime.SINGLETON,
    )
    if gateway is not None:
        container.register_instance(IRemoteSyncGateway, gateway)
    else:
        container.register_factory(IRemoteSyncGateway, _create_http_gateway, Lifetime.SCOPED)


def _create_http_gateway(c: Container) -> HttpRemoteSyncGateway:
    settings = c.resolve(SettingsManager)
    token = settings.get("session.token")
    return HttpRemoteSyncGateway(
        Session.from_token(token) if token else None,
        base_url=settings.get("api.base_url"),
        timeout=settings.get("api.timeout"),
    )

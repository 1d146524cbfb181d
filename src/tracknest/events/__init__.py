from .bus import Event, EventBus, Subscription
from .domain_events import (
    CollectionResyncedEvent,
    ListEvent,
    RecordsLoadedEvent,
    RemovalCommittedEvent,
    RemovalStagedEvent,
    RemovalUndoneEvent,
    SessionEndedEvent,
)

__all__ = [
    "CollectionResyncedEvent",
    "Event",
    "EventBus",
    "ListEvent",
    "RecordsLoadedEvent",
    "RemovalCommittedEvent",
    "RemovalStagedEvent",
    "RemovalUndoneEvent",
    "SessionEndedEvent",
    "Subscription",
]

from dataclasses import dataclass, field

from .bus import Event


@dataclass(kw_only=True)
class ListEvent(Event):
    """Base for everything a list controller announces on the bus."""
    collection: str = ""


@dataclass(kw_only=True)
class RecordsLoadedEvent(ListEvent):
    count: int = 0
    query: tuple[str, str] | None = None


@dataclass(kw_only=True)
class RemovalStagedEvent(ListEvent):
    record_ids: list = field(default_factory=list)
    deadline: float = 0.0


@dataclass(kw_only=True)
class RemovalCommittedEvent(ListEvent):
    record_ids: list = field(default_factory=list)


@dataclass(kw_only=True)
class RemovalUndoneEvent(ListEvent):
    record_ids: list = field(default_factory=list)
    recreated: bool = False


@dataclass(kw_only=True)
class CollectionResyncedEvent(ListEvent):
    reason: str = ""


@dataclass(kw_only=True)
class SessionEndedEvent(Event):
    """Published on logout; every live list controller disposes itself."""
    username: str = ""

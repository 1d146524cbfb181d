from .http_gateway import HttpRemoteSyncGateway
from .memory_gateway import InMemoryRemoteSyncGateway

__all__ = ["HttpRemoteSyncGateway", "InMemoryRemoteSyncGateway"]

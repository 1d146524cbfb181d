from .gateway import IRemoteSyncGateway
from .session import Role, Session

__all__ = ["IRemoteSyncGateway", "Role", "Session"]

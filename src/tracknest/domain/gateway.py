from abc import ABC, abstractmethod
from typing import Any, Hashable, List


class IRemoteSyncGateway(ABC):
    """Async CRUD + search over named remote collections.

    Implementations assign ids on ``create`` and raise
    ``RemoteNotFoundError`` from ``delete`` when the id is already gone.
    """

    @abstractmethod
    async def list(self, collection: str) -> List[Any]:
        """Return every record of *collection* in server order"""

    @abstractmethod
    async def search(self, collection: str, field: str, term: str) -> List[Any]:
        """Return the records of *collection* whose *field* matches *term*"""

    @abstractmethod
    async def create(self, collection: str, record: Any) -> Any:
        """Persist *record* and return the server copy with its assigned id"""

    @abstractmethod
    async def update(self, collection: str, id: Hashable, record: Any) -> Any:
        """Replace the record *id* and return the server copy"""

    @abstractmethod
    async def delete(self, collection: str, id: Hashable) -> None:
        """Delete the record *id*"""

    async def close(self) -> None:
        """Release transport resources."""

"""Default configuration values for TrackNest."""

from __future__ import annotations

from typing import Final

DEFAULT_BASE_URL: Final[str] = "http://localhost:8080/api"
# The login endpoint lives outside the /api prefix on the backend.
DEFAULT_AUTH_URL: Final[str] = "http://localhost:8080/auth/login"
REQUEST_TIMEOUT_SEC: Final[float] = 10.0

ENTRIES: Final[str] = "entries"
GROUPS: Final[str] = "groups"
USERS: Final[str] = "users"
COLLECTIONS: Final[tuple[str, ...]] = (ENTRIES, GROUPS, USERS)

# ---------------------------------------------------------------------------
# List behaviour
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE: Final[int] = 10
# Grace period between staging a removal and sending the remote deletes.
UNDO_DELAY_MS: Final[int] = 5000

# Fields the backend accepts for ``GET /entries/search``; anything else is
# rejected server-side with a 500, so the client refuses it up front.
ENTRY_SEARCH_FIELDS: Final[tuple[str, ...]] = ("title", "description", "type")
GROUP_SEARCH_FIELDS: Final[tuple[str, ...]] = ("name",)

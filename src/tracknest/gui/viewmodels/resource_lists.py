"""Collection-specific list controllers for entries, groups and users."""

from __future__ import annotations

from typing import Any, Hashable, Optional, Sequence

from tracknest.config import ENTRIES, ENTRY_SEARCH_FIELDS, GROUP_SEARCH_FIELDS, GROUPS, USERS
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.domain.session import Role
from tracknest.errors import PermissionDeniedError
from tracknest.gui.viewmodels.list_controller import ListController


class EntryListController(ListController):
    collection = ENTRIES
    searchable_fields = ENTRY_SEARCH_FIELDS


class GroupListController(ListController):
    """Groups; only admins get the bulk "delete selected" action."""

    collection = GROUPS
    searchable_fields = GROUP_SEARCH_FIELDS

    def _check_can_bulk_remove(self) -> None:
        if not self.role.can_bulk_delete:
            raise PermissionDeniedError("Deleting selected groups requires the ADMIN role")


class UserListController(ListController):
    """User accounts, keyed by username. Admin only, and not searchable."""

    collection = USERS
    searchable_fields = ()

    def __init__(
        self,
        gateway: IRemoteSyncGateway,
        *,
        role: Role = Role.USER,
        current_username: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        if not role.can_manage_users:
            raise PermissionDeniedError("Managing users requires the ADMIN role")
        self._current_username = current_username
        super().__init__(gateway, role=role, **kwargs)

    def can_remove(self, username: Hashable) -> bool:
        """Whether the row for *username* should offer edit/delete actions."""
        return username != self._current_username

    def _check_can_remove(self, ids: Sequence[Hashable]) -> None:
        if any(not self.can_remove(username) for username in ids):
            raise PermissionDeniedError("You cannot delete the account you are signed in with")


CONTROLLER_TYPES: dict[str, type[ListController]] = {
    ENTRIES: EntryListController,
    GROUPS: GroupListController,
    USERS: UserListController,
}

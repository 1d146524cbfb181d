from .signal import Signal, ObservableProperty
from .base import BaseViewModel
from .collection_store import ResourceCollectionStore
from .paginator import DerivedView, SortFilterPaginator
from .selection import SelectionManager
from .staged_removal import PendingRemovalPolicy, RemovalBatch, StagedRemovalBuffer
from .list_controller import ListController
from .resource_lists import EntryListController, GroupListController, UserListController

__all__ = [
    "BaseViewModel",
    "DerivedView",
    "EntryListController",
    "GroupListController",
    "ListController",
    "ObservableProperty",
    "PendingRemovalPolicy",
    "RemovalBatch",
    "ResourceCollectionStore",
    "SelectionManager",
    "Signal",
    "SortFilterPaginator",
    "StagedRemovalBuffer",
    "UserListController",
]

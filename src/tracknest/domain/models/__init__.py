from .core import Entry, EntryType, Group, Record, User, Visibility, field_value
from .query import PageSpec, SortDirection, SortSpec

__all__ = [
    "Entry",
    "EntryType",
    "Group",
    "PageSpec",
    "Record",
    "SortDirection",
    "SortSpec",
    "User",
    "Visibility",
    "field_value",
]

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortSpec:
    """Sort key plus direction; ``key=None`` keeps insertion order."""

    key: Optional[str] = None
    direction: SortDirection = SortDirection.ASC

    def toggled(self, key: str) -> "SortSpec":
        """Same key flips the direction, a new key starts ascending."""
        if key == self.key:
            return SortSpec(key, self.direction.flipped())
        return SortSpec(key, SortDirection.ASC)

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True)
class PageSpec:
    page_size: int = 10
    current_page: int = 1

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    def total_pages(self, count: int) -> int:
        return max(1, math.ceil(count / self.page_size))

    def clamped(self, count: int) -> "PageSpec":
        page = min(max(1, self.current_page), self.total_pages(count))
        if page == self.current_page:
            return self
        return replace(self, current_page=page)

    def bounds(self) -> tuple[int, int]:
        start = (self.current_page - 1) * self.page_size
        return start, start + self.page_size

"""
Pagination and sorting value objects shared by the repository, service
and API layers.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class Sort:
    """Single-property ordering, e.g. ``Sort("created_at", SortDirection.DESC)``."""

    property: str = "id"
    direction: SortDirection = SortDirection.ASC


@dataclass
class Page(Generic[T]):
    """One zero-based page of results plus the metadata clients need to navigate."""

    items: list[T]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)

    @property
    def is_first(self) -> bool:
        return self.page == 0

    @property
    def is_last(self) -> bool:
        return self.page + 1 >= self.total_pages

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class TotalCountMode(str, Enum):
    """How much counting a search does beyond the requested page.

    NONE:       total equals the number of records on the page
    EXACT:      total equals the number of matching records
    NEXT_PAGES: count just far enough to tell whether more pages follow
    """

    NONE = "NONE"
    EXACT = "EXACT"
    NEXT_PAGES = "NEXT_PAGES"


# NEXT_PAGES looks ahead this many pages (plus one record) past the offset.
NEXT_PAGES_LOOKAHEAD = 5


@dataclass(frozen=True)
class EqualsFilter:
    field: str
    value: Any


@dataclass(frozen=True)
class EqualsAnyFilter:
    field: str
    values: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class ContainsFilter:
    field: str
    value: str


@dataclass(frozen=True)
class RangeFilter:
    field: str
    gte: Any = None
    gt: Any = None
    lte: Any = None
    lt: Any = None

    def __post_init__(self):
        if all(b is None for b in (self.gte, self.gt, self.lte, self.lt)):
            raise ValueError(f"RangeFilter on {self.field} needs at least one bound")


@dataclass(frozen=True)
class NotFilter:
    inner: "Filter"


Filter = Union[EqualsFilter, EqualsAnyFilter, ContainsFilter, RangeFilter, NotFilter]


@dataclass(frozen=True)
class FieldSorting:
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class QueryDescriptor:
    """Filtered, sorted, paginated request handed to a repository.

    Immutable: build a new descriptor with ``with_filter`` / ``with_paging``
    instead of mutating one.
    """

    filters: Tuple[Filter, ...] = ()
    sortings: Tuple[FieldSorting, ...] = ()
    limit: Optional[int] = None
    offset: int = 0
    total_count_mode: TotalCountMode = TotalCountMode.NONE

    def __post_init__(self):
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "sortings", tuple(self.sortings))
        if self.limit is not None and int(self.limit) < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")
        if int(self.offset) < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")

    @staticmethod
    def for_page(*, page: int, limit: int, **kwargs: Any) -> "QueryDescriptor":
        if int(page) < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if int(limit) < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        return QueryDescriptor(limit=int(limit), offset=(int(page) - 1) * int(limit), **kwargs)

    def with_filter(self, f: Filter) -> "QueryDescriptor":
        return QueryDescriptor(
            filters=self.filters + (f,),
            sortings=self.sortings,
            limit=self.limit,
            offset=self.offset,
            total_count_mode=self.total_count_mode,
        )

    def with_paging(self, *, limit: Optional[int], offset: int = 0) -> "QueryDescriptor":
        return QueryDescriptor(
            filters=self.filters,
            sortings=self.sortings,
            limit=limit,
            offset=offset,
            total_count_mode=self.total_count_mode,
        )


@dataclass
class SearchResult:
    descriptor: QueryDescriptor
    elements: dict = field(default_factory=dict)
    total: int = 0

    def first(self):
        return next(iter(self.elements.values()), None)

    def has_next_page(self) -> bool:
        return self.total > self.descriptor.offset + len(self.elements)

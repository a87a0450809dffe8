from .criteria import (
    ContainsFilter,
    EqualsAnyFilter,
    EqualsFilter,
    FieldSorting,
    NotFilter,
    QueryDescriptor,
    RangeFilter,
    SearchResult,
    SortDirection,
    TotalCountMode,
)
from .repository import EntityRepository, resolve_field

__all__ = [
    "ContainsFilter",
    "EntityRepository",
    "EqualsAnyFilter",
    "EqualsFilter",
    "FieldSorting",
    "NotFilter",
    "QueryDescriptor",
    "RangeFilter",
    "SearchResult",
    "SortDirection",
    "TotalCountMode",
    "resolve_field",
]

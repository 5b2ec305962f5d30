"""Generic paging, sorting and search composition."""

from chocan.query.composer import FieldFilter, FieldPredicate, OrderTerm, Query, QueryComposer
from chocan.query.metadata import (
    Comparison,
    EntityMetadata,
    SearchableField,
    SortableField,
    metadata_for,
)
from chocan.query.options import (
    PagingOptions,
    SearchOptions,
    SearchTerm,
    SortDirection,
    SortOptions,
    SortTerm,
)

__all__ = [
    "Comparison",
    "EntityMetadata",
    "FieldFilter",
    "FieldPredicate",
    "OrderTerm",
    "PagingOptions",
    "Query",
    "QueryComposer",
    "SearchOptions",
    "SearchTerm",
    "SearchableField",
    "SortDirection",
    "SortOptions",
    "SortTerm",
    "SortableField",
    "metadata_for",
]

"""Compose bounded, ordered queries from paging, sort and search options."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from itertools import islice
from typing import Any, Iterable, Iterator, TypeVar

from chocan.exceptions import ValidationError
from chocan.query.metadata import Comparison, EntityMetadata, SearchableField
from chocan.query.options import (
    PagingOptions,
    SearchOptions,
    SortDirection,
    SortOptions,
)

T = TypeVar("T")


def plain_value(value: Any) -> Any:
    """Unwrap enums so stored values compare as their raw form."""
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class FieldPredicate:
    """A single comparison against one field."""

    field: SearchableField
    operator: str
    value: Any

    def matches(self, entity: Any) -> bool:
        actual = plain_value(getattr(entity, self.field.name, None))
        if actual is None:
            return False

        if self.field.comparison == Comparison.CONTAINS:
            left = str(actual).casefold()
            right = str(self.value).casefold()
            if self.operator == "co":
                return right in left
            if self.operator == "sw":
                return left.startswith(right)
            return left == right

        # Datetimes compare on their date part against date search values
        if isinstance(actual, datetime) and not isinstance(self.value, datetime):
            actual = actual.date()

        if self.operator == "eq":
            return actual == self.value
        if self.operator == "gt":
            return actual > self.value
        if self.operator == "gte":
            return actual >= self.value
        if self.operator == "lt":
            return actual < self.value
        return actual <= self.value


@dataclass(frozen=True)
class FieldFilter:
    """All predicates on one field; an entity matches if any predicate does."""

    field: str
    predicates: tuple[FieldPredicate, ...]

    def matches(self, entity: Any) -> bool:
        return any(p.matches(entity) for p in self.predicates)


@dataclass(frozen=True)
class OrderTerm:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Immutable description of a filtered, ordered, paged query.

    Filters are ANDed together. Ordering is applied key by key with a stable
    sort, so ties keep storage (identifier) order. When ``after_id`` is set
    only rows with a greater identifier match, which lets callers page by key
    instead of by offset.
    """

    filters: tuple[FieldFilter, ...]
    ordering: tuple[OrderTerm, ...]
    offset: int
    limit: int
    id_field: str = "id"
    after_id: Any = None

    def matches(self, entity: Any) -> bool:
        if self.after_id is not None and getattr(entity, self.id_field) <= self.after_id:
            return False
        return all(f.matches(entity) for f in self.filters)

    def apply(self, rows: Iterable[T]) -> Iterator[T]:
        """Lazily evaluate the query over rows given in storage order."""
        matched = [row for row in rows if self.matches(row)]

        # Least significant key first; Python's sort is stable
        for term in reversed(self.ordering):
            matched.sort(key=lambda row, f=term.field: _sort_key(row, f), reverse=term.descending)

        yield from islice(matched, self.offset, self.offset + self.limit)


def _sort_key(row: Any, field: str) -> tuple[bool, Any]:
    value = plain_value(getattr(row, field, None))
    return (value is None, value)


class QueryComposer:
    """Build :class:`Query` objects for one entity type."""

    def __init__(self, metadata: EntityMetadata) -> None:
        self.metadata = metadata

    def compose(
        self,
        paging: PagingOptions | None = None,
        sort: SortOptions | None = None,
        search: SearchOptions | None = None,
    ) -> Query:
        """Validate options against the metadata and produce a query.

        Raises
        ------
        ValidationError
            If paging is out of range, or a sort/search term names an
            undeclared field, an unsupported operator or an unparsable value.
        """
        paging = paging or PagingOptions()
        paging.validate()

        return Query(
            filters=self._resolve_filters(search or SearchOptions()),
            ordering=self._resolve_ordering(sort or SortOptions()),
            offset=paging.offset,
            limit=paging.limit,
            id_field=self.metadata.id_field,
        )

    def _resolve_ordering(self, sort: SortOptions) -> tuple[OrderTerm, ...]:
        terms = []
        for term in sort.terms:
            declared = self.metadata.sortable_field(term.field)
            terms.append(
                OrderTerm(field=declared.name, descending=term.direction == SortDirection.DESC)
            )

        if not terms:
            default = self.metadata.default_sort
            if default is not None:
                terms.append(OrderTerm(field=default.name))

        return tuple(terms)

    def _resolve_filters(self, search: SearchOptions) -> tuple[FieldFilter, ...]:
        # Group by field, keeping first-appearance order of the fields
        grouped: dict[str, list[FieldPredicate]] = {}
        for term in search.terms:
            declared = self.metadata.searchable_field(term.field)
            operator = term.operator or declared.default_operator
            if operator not in declared.operators:
                raise ValidationError(
                    f"Operator '{operator}' is not supported for field '{declared.name}'"
                )
            if declared.comparison == Comparison.CONTAINS:
                value = term.value
            else:
                value = declared.convert(term.value)
            grouped.setdefault(declared.name, []).append(
                FieldPredicate(field=declared, operator=operator, value=value)
            )

        return tuple(
            FieldFilter(field=name, predicates=tuple(predicates))
            for name, predicates in grouped.items()
        )

"""Per-entity declarations of sortable and searchable fields.

Every entity type implements ``field_metadata()`` returning an
:class:`EntityMetadata`. The query composer consults it to translate
caller-supplied field names; any name that is not declared is rejected so
that internal fields are never exposed through sorting or filtering.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Protocol

from chocan.exceptions import ConfigurationError, ValidationError


class Comparison(str, Enum):
    """How a searchable field compares a stored value with a search value."""

    CONTAINS = "contains"  # case-insensitive substring
    EQUALS = "equals"  # typed equality (plus ordering operators)


TEXT_OPERATORS = ("co", "eq", "sw")
ORDERED_OPERATORS = ("eq", "gt", "gte", "lt", "lte")
ALL_OPERATORS = frozenset(TEXT_OPERATORS + ORDERED_OPERATORS)


def parse_int(text: str) -> int:
    return int(text)


def parse_decimal(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal: {text!r}") from e


def parse_date(text: str) -> date:
    # Accepts both dates and datetimes, compares on the date part
    return date.fromisoformat(text[:10])


@dataclass(frozen=True)
class SortableField:
    """A field callers may order by."""

    name: str
    is_default: bool = False


@dataclass(frozen=True)
class SearchableField:
    """A field callers may filter on."""

    name: str
    comparison: Comparison = Comparison.CONTAINS
    parse: Callable[[str], Any] = str

    @property
    def operators(self) -> tuple[str, ...]:
        """Operators accepted for this field."""
        if self.comparison == Comparison.CONTAINS:
            return TEXT_OPERATORS
        return ORDERED_OPERATORS

    @property
    def default_operator(self) -> str:
        """Operator used when the caller does not name one."""
        return "co" if self.comparison == Comparison.CONTAINS else "eq"

    def convert(self, text: str) -> Any:
        """Convert a caller-supplied value to the field's type."""
        try:
            return self.parse(text)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid search value {text!r} for field '{self.name}'"
            ) from e


@dataclass(frozen=True)
class EntityMetadata:
    """Sorting/searching metadata and storage layout for one entity type.

    Attributes
    ----------
    collection : str
        Table or collection name in the record store.
    sortable : tuple[SortableField, ...]
        Fields callers may sort by. At most one may be the default.
    searchable : tuple[SearchableField, ...]
        Fields callers may search on.
    id_field : str
        Identifier attribute, assigned by the store.
    name_field : str | None
        Canonical name attribute used by ``get_all_by_name``.
    created_field : str | None
        Creation timestamp stamped on ``add`` when empty.
    """

    collection: str
    sortable: tuple[SortableField, ...] = ()
    searchable: tuple[SearchableField, ...] = ()
    id_field: str = "id"
    name_field: str | None = None
    created_field: str | None = None

    def __post_init__(self) -> None:
        defaults = [f.name for f in self.sortable if f.is_default]
        if len(defaults) > 1:
            raise ConfigurationError(
                f"{self.collection}: more than one default sortable field: {defaults}"
            )
        for kind, declared in (("sortable", self.sortable), ("searchable", self.searchable)):
            names = [f.name.lower() for f in declared]
            if len(names) != len(set(names)):
                raise ConfigurationError(f"{self.collection}: duplicate {kind} field")

    @property
    def default_sort(self) -> SortableField | None:
        """The default sortable field, if one is declared."""
        return next((f for f in self.sortable if f.is_default), None)

    def sortable_field(self, name: str) -> SortableField:
        """Look up a sortable field by case-insensitive name."""
        for f in self.sortable:
            if f.name.lower() == name.lower():
                return f
        raise ValidationError(f"Field '{name}' is not sortable")

    def searchable_field(self, name: str) -> SearchableField:
        """Look up a searchable field by case-insensitive name."""
        for f in self.searchable:
            if f.name.lower() == name.lower():
                return f
        raise ValidationError(f"Field '{name}' is not searchable")


class Entity(Protocol):
    """Structural type of every record the repository can manage."""

    id: int | None
    version: int

    @classmethod
    def field_metadata(cls) -> EntityMetadata: ...


@lru_cache(maxsize=None)
def metadata_for(entity_type: type) -> EntityMetadata:
    """Resolve (once) the metadata an entity type declares."""
    return entity_type.field_metadata()

"""Caller-supplied paging, sort and search options.

The text forms mirror the HTTP query parameters:

* ``sort=<field> [asc|desc]``
* ``search=<field> [<op>] <value> [| <value> ...]``

Alternatives separated by ``|`` become separate terms on the same field.
When three or more tokens are given and the second names an operator, it
is read as the operator: ``name Eq Smith`` searches ``eq Smith``. Spell the
operator out (``name co Eq Smith``) to search for such a value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from chocan.exceptions import ValidationError
from chocan.query.metadata import ALL_OPERATORS

MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 25


@dataclass(frozen=True)
class PagingOptions:
    """Window of results: skip ``offset`` items, return at most ``limit``."""

    offset: int = 0
    limit: int = DEFAULT_LIMIT

    def validate(self) -> None:
        """Raise ValidationError when offset or limit is out of range."""
        if self.offset < 0:
            raise ValidationError("Offset must be a non-negative number")
        if not MIN_LIMIT <= self.limit <= MAX_LIMIT:
            raise ValidationError(
                f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}"
            )


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortTerm:
    """One ``(field, direction)`` pair."""

    field: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, text: str) -> "SortTerm":
        tokens = text.split()
        if not tokens or len(tokens) > 2:
            raise ValidationError(f"Invalid sort term '{text}'")
        if len(tokens) == 1:
            return cls(field=tokens[0])
        try:
            direction = SortDirection(tokens[1].lower())
        except ValueError:
            raise ValidationError(f"Invalid sort direction in '{text}'") from None
        return cls(field=tokens[0], direction=direction)


@dataclass(frozen=True)
class SortOptions:
    """Ordered sort terms; the first one is the primary key."""

    terms: tuple[SortTerm, ...] = ()

    @classmethod
    def from_strings(cls, values: Iterable[str] | None) -> "SortOptions":
        if not values:
            return cls()
        return cls(terms=tuple(SortTerm.parse(v) for v in values if v.strip()))


@dataclass(frozen=True)
class SearchTerm:
    """One ``(field, value)`` pair, with an optional explicit operator."""

    field: str
    value: str
    operator: str | None = None

    @classmethod
    def parse(cls, text: str) -> tuple["SearchTerm", ...]:
        """Parse ``<field> [<op>] <value> [| <value> ...]`` into terms.

        An operator name in second position is always taken as the operator.
        """
        tokens = text.split()
        if len(tokens) < 2:
            raise ValidationError(f"Invalid search term '{text}'")

        field = tokens[0]
        operator = None
        rest = tokens[1:]
        if len(tokens) >= 3 and tokens[1].lower() in ALL_OPERATORS:
            operator = tokens[1].lower()
            rest = tokens[2:]

        values = [v.strip() for v in " ".join(rest).split("|")]
        values = [v for v in values if v]
        if not values:
            raise ValidationError(f"Invalid search term '{text}'")
        return tuple(cls(field=field, value=v, operator=operator) for v in values)


@dataclass(frozen=True)
class SearchOptions:
    """Search terms: ANDed across fields, ORed within one field."""

    terms: tuple[SearchTerm, ...] = ()

    @classmethod
    def from_strings(cls, values: Iterable[str] | None) -> "SearchOptions":
        if not values:
            return cls()
        terms: list[SearchTerm] = []
        for value in values:
            if value.strip():
                terms.extend(SearchTerm.parse(value))
        return cls(terms=tuple(terms))

"""Record store contract consumed by the generic repository."""

from __future__ import annotations

from typing import Any, Iterator, Protocol, TypeVar

from chocan.query.composer import Query

T = TypeVar("T")


class RecordStore(Protocol):
    """Durable record store keyed by numeric identifier.

    Implementations raise ``StoreUnavailableError`` when the backing
    storage cannot be reached, and ``ConcurrencyConflictError`` from
    ``update`` when the stored version no longer matches.
    """

    def insert(self, entity_type: type[T], entity: T) -> T:
        """Persist a new entity, assigning its identifier."""

    def get(self, entity_type: type[T], entity_id: Any) -> T | None:
        """Return the entity with this identifier, or None."""

    def update(self, entity_type: type[T], entity: T) -> int:
        """Replace an entity, checking its version. Returns rows written."""

    def delete(self, entity_type: type[T], entity_id: Any) -> T | None:
        """Remove and return the entity, or None if absent."""

    def query(self, entity_type: type[T], query: Query) -> Iterator[T]:
        """Stream the entities selected by a composed query."""

"""In-memory record store for development and tests."""

import copy
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator, TypeVar

from chocan.exceptions import ConcurrencyConflictError
from chocan.query.composer import Query
from chocan.query.metadata import metadata_for

T = TypeVar("T")


@dataclass
class InMemoryRecordStore:
    """Dict-per-collection store with sequential identifiers.

    Entities are copied on the way in and out so callers never share
    instances with the store. Writes are serialized with a lock.
    """

    collections: dict[str, dict[int, Any]] = field(default_factory=dict)

    _sequences: dict[str, itertools.count] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def _collection(self, entity_type: type) -> tuple[dict[int, Any], str]:
        metadata = metadata_for(entity_type)
        name = metadata.collection
        if name not in self.collections:
            self.collections[name] = {}
        return self.collections[name], metadata.id_field

    def insert(self, entity_type: type[T], entity: T) -> T:
        """Add an entity, assigning the next identifier of its collection."""
        with self._lock:
            rows, id_field = self._collection(entity_type)
            name = metadata_for(entity_type).collection
            sequence = self._sequences.setdefault(name, itertools.count(1))

            new_id = next(sequence)
            setattr(entity, id_field, new_id)
            rows[new_id] = copy.deepcopy(entity)
        return entity

    def get(self, entity_type: type[T], entity_id: Any) -> T | None:
        with self._lock:
            rows, _ = self._collection(entity_type)
            row = rows.get(entity_id)
            return copy.deepcopy(row) if row is not None else None

    def update(self, entity_type: type[T], entity: T) -> int:
        """Replace an entity if its version matches the stored one."""
        with self._lock:
            rows, id_field = self._collection(entity_type)
            entity_id = getattr(entity, id_field)
            current = rows.get(entity_id)

            if current is None:
                raise ConcurrencyConflictError(
                    f"{entity_type.__name__} {entity_id} was deleted"
                )
            if current.version != entity.version:
                raise ConcurrencyConflictError(
                    f"{entity_type.__name__} {entity_id} was modified concurrently"
                )

            entity.version += 1
            rows[entity_id] = copy.deepcopy(entity)
        return 1

    def delete(self, entity_type: type[T], entity_id: Any) -> T | None:
        with self._lock:
            rows, _ = self._collection(entity_type)
            return rows.pop(entity_id, None)

    def query(self, entity_type: type[T], query: Query) -> Iterator[T]:
        """Evaluate a query over a snapshot taken in identifier order."""
        with self._lock:
            rows, _ = self._collection(entity_type)
            snapshot = [copy.deepcopy(rows[key]) for key in sorted(rows)]
        yield from query.apply(snapshot)

    def summary(self) -> dict[str, int]:
        """Return entity counts per collection."""
        with self._lock:
            return {name: len(rows) for name, rows in self.collections.items()}

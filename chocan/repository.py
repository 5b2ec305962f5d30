"""Generic repository: one implementation reused by every entity type."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Generic, Iterator, TypeVar

from chocan.query.composer import QueryComposer
from chocan.query.metadata import metadata_for
from chocan.query.options import (
    MAX_LIMIT,
    PagingOptions,
    SearchOptions,
    SearchTerm,
    SortOptions,
)
from chocan.store.base import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """CRUD plus paged, sorted and filtered listing for one entity type.

    Parameters
    ----------
    entity_type : type[T]
        Entity dataclass implementing ``field_metadata()``.
    store : RecordStore
        Backing record store.

    Notes
    -----
    Lookups that find nothing return ``None``; that is an expected outcome,
    not an error. Store outages propagate as ``StoreUnavailableError`` and
    optimistic conflicts as ``ConcurrencyConflictError``.
    """

    def __init__(self, entity_type: type[T], store: RecordStore) -> None:
        self.entity_type = entity_type
        self.store = store
        self.metadata = metadata_for(entity_type)
        self.composer = QueryComposer(self.metadata)

    def add(self, entity: T) -> T:
        """Persist a new entity and return it with its identifier set."""
        created_field = self.metadata.created_field
        if created_field and getattr(entity, created_field) is None:
            setattr(entity, created_field, datetime.now(timezone.utc))

        stored = self.store.insert(self.entity_type, entity)
        logger.debug(
            "Added %s %s", self.entity_type.__name__, getattr(stored, self.metadata.id_field)
        )
        return stored

    def get(self, entity_id: Any) -> T | None:
        return self.store.get(self.entity_type, entity_id)

    def update(self, entity: T) -> int:
        """Replace an entity; raises ConcurrencyConflictError on a stale version."""
        return self.store.update(self.entity_type, entity)

    def delete(self, entity_id: Any) -> T | None:
        """Remove an entity, returning its last value or None if absent."""
        return self.store.delete(self.entity_type, entity_id)

    def get_all(
        self,
        paging: PagingOptions | None = None,
        sort: SortOptions | None = None,
        search: SearchOptions | None = None,
    ) -> Iterator[T]:
        """Return a lazy, single-use sequence of at most ``paging.limit`` entities.

        Options are validated eagerly, so a ValidationError is raised by this
        call rather than on first iteration.
        """
        query = self.composer.compose(paging, sort, search)
        return self.store.query(self.entity_type, query)

    def get_all_by_name(self, name: str) -> Iterator[T]:
        """Entities whose canonical name contains ``name`` (case-insensitive).

        Results come in identifier order, one page per store query. Pages are
        keyed on the last identifier seen, so rows added or removed between
        pages neither repeat nor push other rows out of the result. Entity
        types without a name field yield nothing.
        """
        name_field = self.metadata.name_field
        if name_field is None:
            return iter(())

        search = SearchOptions(terms=(SearchTerm(field=name_field, value=name, operator="co"),))
        return self._get_all_pages(search)

    def _get_all_pages(self, search: SearchOptions) -> Iterator[T]:
        query = replace(
            self.composer.compose(PagingOptions(limit=MAX_LIMIT), search=search), ordering=()
        )
        while True:
            page = list(self.store.query(self.entity_type, query))
            yield from page
            if len(page) < MAX_LIMIT:
                return
            query = replace(query, after_id=getattr(page[-1], self.metadata.id_field))

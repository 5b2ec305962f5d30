"""Record stores backing the generic repository."""

from chocan.store.base import RecordStore
from chocan.store.memory import InMemoryRecordStore
from chocan.store.postgres import PostgresRecordStore

__all__ = ["InMemoryRecordStore", "PostgresRecordStore", "RecordStore"]

"""Populate a record store with synthetic reference data."""

from __future__ import annotations

import logging
import time

from chocan.generators.directory import MemberGenerator, ProductGenerator, ProviderGenerator
from chocan.models import Member, Product, Provider
from chocan.repository import Repository
from chocan.store.base import RecordStore

logger = logging.getLogger(__name__)


def seed_store(
    store: RecordStore,
    members: int = 100,
    providers: int = 20,
    products: int = 10,
    seed: int | None = None,
) -> dict[str, int]:
    """Add generated members, providers and products to a store.

    Parameters
    ----------
    store : RecordStore
        Destination store.
    members, providers, products : int
        Number of entities of each type to add.
    seed : int | None
        Random seed for reproducibility.

    Returns
    -------
    dict[str, int]
        Number of entities added per collection.
    """
    plan = [
        ("members", Member, MemberGenerator(seed=seed), members),
        ("providers", Provider, ProviderGenerator(seed=seed), providers),
        ("products", Product, ProductGenerator(seed=seed), products),
    ]

    added: dict[str, int] = {}
    for collection, entity_type, generator, count in plan:
        repository = Repository(entity_type, store)
        t0 = time.perf_counter()
        for entity in generator.generate_batch(count):
            repository.add(entity)
        added[collection] = count
        logger.info("Seeded %d %s in %.1fs", count, collection, time.perf_counter() - t0)

    return added

"""Synthetic data generators for seeding stores."""

from chocan.generators.base import BaseGenerator
from chocan.generators.directory import (
    MemberGenerator,
    ProductGenerator,
    ProviderGenerator,
)
from chocan.generators.seeding import seed_store

__all__ = [
    "BaseGenerator",
    "MemberGenerator",
    "ProductGenerator",
    "ProviderGenerator",
    "seed_store",
]

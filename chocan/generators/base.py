"""Base generator class for all data generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Iterator, TypeVar

from faker import Faker

T = TypeVar("T")


class BaseGenerator(ABC, Generic[T]):
    """Base class for all data generators.

    Provides common initialization: Faker instance creation and
    seed-based reproducibility. All randomness goes through the
    seeded Faker instance, so two generators built with the same
    seed produce the same sequence.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate(self) -> T:
        """Generate a single entity without an identifier."""
        return self._generate_one()

    def generate_batch(self, count: int) -> Iterator[T]:
        """Generate multiple entities.

        Parameters
        ----------
        count : int
            Number of entities to generate.

        Yields
        ------
        T
            Generated entities.
        """
        for _ in range(count):
            yield self._generate_one()

    @abstractmethod
    def _generate_one(self) -> T:
        """Generate one entity."""

"""Generators for members, providers and the service directory."""

from __future__ import annotations

from decimal import Decimal

from chocan.generators.base import BaseGenerator
from chocan.models import Member, MemberStatus, Product, Provider

# Column widths of the persisted records
NAME_MAX = 25
CITY_MAX = 14
STATE_MAX = 2
ZIP_MIN, ZIP_MAX = 10000, 99999


class _ContactMixin:
    def _contact(self) -> dict:
        return {
            "name": self.fake.name()[:NAME_MAX],
            "email": self.fake.email(),
            "street_address": self.fake.street_address(),
            "city": self.fake.city()[:CITY_MAX],
            "state": self.fake.state_abbr()[:STATE_MAX],
            "zip_code": self.fake.random_int(ZIP_MIN, ZIP_MAX),
        }


class MemberGenerator(_ContactMixin, BaseGenerator[Member]):
    """Generate synthetic members; a small share are suspended."""

    SUSPENDED_RATE = 0.1

    def _generate_one(self) -> Member:
        suspended = self.fake.random.random() < self.SUSPENDED_RATE
        return Member(
            **self._contact(),
            status=MemberStatus.SUSPENDED if suspended else MemberStatus.ACTIVE,
        )


class ProviderGenerator(_ContactMixin, BaseGenerator[Provider]):
    """Generate synthetic providers."""

    def _generate_one(self) -> Provider:
        return Provider(**self._contact())


class ProductGenerator(BaseGenerator[Product]):
    """Generate billable services with costs up to $999.99."""

    SERVICES = [
        "Dietitian session",
        "Aerobics exercise session",
        "Chocolate counseling",
        "Group therapy",
        "Nutrition workshop",
        "Yoga class",
        "Cooking class",
        "Wellness checkup",
        "Support group meeting",
        "Stress management",
    ]

    MIN_COST = 10
    MAX_COST = 999

    def _generate_one(self) -> Product:
        dollars = self.fake.random_int(self.MIN_COST, self.MAX_COST)
        cents = self.fake.random_int(0, 99)
        return Product(
            name=self.fake.random_element(self.SERVICES)[:NAME_MAX],
            cost=Decimal(f"{dollars}.{cents:02d}"),
        )

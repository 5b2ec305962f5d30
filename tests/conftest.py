"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from chocan.config import TRANSACTION_CHANNEL, ChannelConfig
from chocan.ingestion import TransactionIngestion
from chocan.models import Member, MemberStatus, Product, Provider, Transaction
from chocan.repository import Repository
from chocan.store.memory import InMemoryRecordStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Create a fresh in-memory store for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def members(store: InMemoryRecordStore) -> Repository[Member]:
    return Repository(Member, store)


@pytest.fixture
def providers(store: InMemoryRecordStore) -> Repository[Provider]:
    return Repository(Provider, store)


@pytest.fixture
def products(store: InMemoryRecordStore) -> Repository[Product]:
    return Repository(Product, store)


@pytest.fixture
def transactions(store: InMemoryRecordStore) -> Repository[Transaction]:
    return Repository(Transaction, store)


@pytest.fixture
def sample_member() -> Member:
    """Create a sample member."""
    return Member(
        name="Ada Lovelace",
        email="ada@example.com",
        street_address="12 Analytical Way",
        city="Portland",
        state="OR",
        zip_code=97201,
        status=MemberStatus.ACTIVE,
    )


@pytest.fixture
def sample_provider() -> Provider:
    """Create a sample provider."""
    return Provider(
        name="Grace Clinic",
        email="clinic@example.com",
        street_address="1 Compiler St",
        city="Salem",
        state="OR",
        zip_code=97301,
    )


@pytest.fixture
def sample_product() -> Product:
    """Create a sample billable service."""
    return Product(name="Dietitian session", cost=Decimal("75.50"))


@pytest.fixture
def channels() -> dict[str, ChannelConfig]:
    return {
        TRANSACTION_CHANNEL: ChannelConfig(
            bootstrap_servers="localhost:9092",
            topic="chocan.transactions",
        )
    }


@pytest.fixture
def publisher(channels: dict[str, ChannelConfig]) -> MagicMock:
    """Publisher double that resolves the transaction channel."""
    mock = MagicMock()
    mock.resolve_channel.side_effect = lambda key: channels[key]
    return mock


@pytest.fixture
def ingestion(
    providers: Repository[Provider],
    members: Repository[Member],
    products: Repository[Product],
    transactions: Repository[Transaction],
    publisher: MagicMock,
) -> TransactionIngestion:
    return TransactionIngestion(providers, members, products, transactions, publisher)


@pytest.fixture
def service_date() -> date:
    return date(2024, 3, 15)

"""Transaction model: one billable service event recorded at a terminal."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from chocan.models.enums import TransactionStatus
from chocan.query.metadata import (
    Comparison,
    EntityMetadata,
    SearchableField,
    SortableField,
    parse_date,
    parse_int,
)


@dataclass
class Transaction:
    """Service delivered by a provider to a member.

    Append-only: written once by the ingestion workflow and never updated.
    References provider, member and product by identifier only.
    """

    provider_id: int
    member_id: int
    product_id: int
    service_date: date
    product_cost: Decimal = Decimal("0.00")
    service_comment: str = ""
    status: TransactionStatus = TransactionStatus.ACCEPTED
    created: datetime | None = None
    id: int | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.status = TransactionStatus(self.status)
        self.product_cost = Decimal(str(self.product_cost))

    @classmethod
    def field_metadata(cls) -> EntityMetadata:
        return EntityMetadata(
            collection="transactions",
            sortable=(
                SortableField("provider_id"),
                SortableField("member_id"),
                SortableField("product_id"),
                SortableField("service_date"),
                SortableField("created", is_default=True),
            ),
            searchable=(
                SearchableField("provider_id", Comparison.EQUALS, parse_int),
                SearchableField("member_id", Comparison.EQUALS, parse_int),
                SearchableField("product_id", Comparison.EQUALS, parse_int),
                SearchableField("service_date", Comparison.EQUALS, parse_date),
                SearchableField("created", Comparison.EQUALS, parse_date),
            ),
            created_field="created",
        )

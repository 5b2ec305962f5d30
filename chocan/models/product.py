"""Product (billable provider service) model."""

from dataclasses import dataclass
from decimal import Decimal

from chocan.query.metadata import (
    Comparison,
    EntityMetadata,
    SearchableField,
    SortableField,
    parse_decimal,
)


@dataclass
class Product:
    """A service a provider can bill for, identified by its service code."""

    name: str
    cost: Decimal = Decimal("0.00")
    id: int | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.cost = Decimal(str(self.cost))

    @classmethod
    def field_metadata(cls) -> EntityMetadata:
        return EntityMetadata(
            collection="products",
            sortable=(
                SortableField("name", is_default=True),
                SortableField("cost"),
            ),
            searchable=(
                SearchableField("name"),
                SearchableField("cost", Comparison.EQUALS, parse_decimal),
            ),
            name_field="name",
        )

"""Provider model."""

from dataclasses import dataclass

from chocan.query.metadata import (
    Comparison,
    EntityMetadata,
    SearchableField,
    SortableField,
    parse_int,
)


@dataclass
class Provider:
    """A ChocAn provider delivering services to members."""

    name: str
    email: str = ""
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: int = 0
    id: int | None = None
    version: int = 0

    @classmethod
    def field_metadata(cls) -> EntityMetadata:
        return EntityMetadata(
            collection="providers",
            sortable=(
                SortableField("name", is_default=True),
                SortableField("city"),
                SortableField("state"),
                SortableField("zip_code"),
            ),
            searchable=(
                SearchableField("name"),
                SearchableField("email"),
                SearchableField("city"),
                SearchableField("state"),
                SearchableField("zip_code", Comparison.EQUALS, parse_int),
            ),
            name_field="name",
        )

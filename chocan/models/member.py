"""Member model."""

from dataclasses import dataclass

from chocan.models.enums import MemberStatus
from chocan.query.metadata import (
    Comparison,
    EntityMetadata,
    SearchableField,
    SortableField,
    parse_int,
)


@dataclass
class Member:
    """A ChocAn member receiving services."""

    name: str
    email: str = ""
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: int = 0
    status: MemberStatus = MemberStatus.ACTIVE
    id: int | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.status = MemberStatus(self.status)

    @classmethod
    def field_metadata(cls) -> EntityMetadata:
        return EntityMetadata(
            collection="members",
            sortable=(
                SortableField("name", is_default=True),
                SortableField("city"),
                SortableField("state"),
                SortableField("zip_code"),
                SortableField("status"),
            ),
            searchable=(
                SearchableField("name"),
                SearchableField("email"),
                SearchableField("city"),
                SearchableField("state"),
                SearchableField("status"),
                SearchableField("zip_code", Comparison.EQUALS, parse_int),
            ),
            name_field="name",
        )

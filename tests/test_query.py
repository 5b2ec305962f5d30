"""Tests for field metadata, query options and the query composer."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from chocan.exceptions import ConfigurationError, ValidationError
from chocan.models import Member, MemberStatus, Product, Transaction
from chocan.query import (
    Comparison,
    EntityMetadata,
    PagingOptions,
    QueryComposer,
    SearchableField,
    SearchOptions,
    SearchTerm,
    SortableField,
    SortDirection,
    SortOptions,
    SortTerm,
    metadata_for,
)
from chocan.query.metadata import parse_date, parse_decimal, parse_int


def _member(name: str, city: str = "Portland", zip_code: int = 97201, **kwargs) -> Member:
    return Member(name=name, city=city, zip_code=zip_code, **kwargs)


class TestEntityMetadata:
    """Tests for EntityMetadata declarations."""

    def test_member_metadata(self) -> None:
        metadata = metadata_for(Member)

        assert metadata.collection == "members"
        assert metadata.default_sort == SortableField("name", is_default=True)
        assert metadata.name_field == "name"
        assert metadata.created_field is None

    def test_metadata_is_cached(self) -> None:
        assert metadata_for(Product) is metadata_for(Product)

    def test_transaction_has_no_name_field(self) -> None:
        metadata = metadata_for(Transaction)

        assert metadata.name_field is None
        assert metadata.created_field == "created"
        assert metadata.default_sort.name == "created"

    def test_lookup_is_case_insensitive(self) -> None:
        metadata = metadata_for(Member)

        assert metadata.sortable_field("CITY").name == "city"
        assert metadata.searchable_field("Zip_Code").name == "zip_code"

    def test_undeclared_sort_field(self) -> None:
        with pytest.raises(ValidationError, match="'version' is not sortable"):
            metadata_for(Member).sortable_field("version")

    def test_undeclared_search_field(self) -> None:
        with pytest.raises(ValidationError, match="'street_address' is not searchable"):
            metadata_for(Member).searchable_field("street_address")

    def test_two_defaults_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            EntityMetadata(
                collection="things",
                sortable=(SortableField("a", True), SortableField("b", True)),
            )

    def test_duplicate_fields_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            EntityMetadata(
                collection="things",
                searchable=(SearchableField("a"), SearchableField("A")),
            )

    def test_no_default_sort(self) -> None:
        assert EntityMetadata(collection="things").default_sort is None


class TestSearchableField:
    """Tests for operator sets and value conversion."""

    def test_text_field_operators(self) -> None:
        field = SearchableField("name")

        assert field.default_operator == "co"
        assert set(field.operators) == {"co", "eq", "sw"}

    def test_typed_field_operators(self) -> None:
        field = SearchableField("zip_code", Comparison.EQUALS, parse_int)

        assert field.default_operator == "eq"
        assert "gte" in field.operators
        assert "co" not in field.operators

    def test_convert(self) -> None:
        assert SearchableField("z", Comparison.EQUALS, parse_int).convert("42") == 42
        assert SearchableField("c", Comparison.EQUALS, parse_decimal).convert("1.50") == Decimal("1.50")
        assert SearchableField("d", Comparison.EQUALS, parse_date).convert(
            "2024-03-15T10:00:00"
        ) == date(2024, 3, 15)

    @pytest.mark.parametrize(
        "parse,text",
        [(parse_int, "abc"), (parse_decimal, "1.2.3"), (parse_date, "15/03/2024")],
    )
    def test_convert_invalid(self, parse, text: str) -> None:
        field = SearchableField("f", Comparison.EQUALS, parse)

        with pytest.raises(ValidationError, match="Invalid search value"):
            field.convert(text)


class TestPagingOptions:
    """Tests for PagingOptions validation."""

    def test_defaults(self) -> None:
        paging = PagingOptions()

        assert paging.offset == 0
        assert paging.limit == 25
        paging.validate()

    @pytest.mark.parametrize("limit", [1, 50, 100])
    def test_valid_limits(self, limit: int) -> None:
        PagingOptions(limit=limit).validate()

    @pytest.mark.parametrize("offset,limit", [(-1, 10), (0, 0), (0, 101), (0, -5)])
    def test_out_of_range(self, offset: int, limit: int) -> None:
        with pytest.raises(ValidationError):
            PagingOptions(offset=offset, limit=limit).validate()


class TestSortTerm:
    """Tests for parsing the sort text form."""

    def test_field_only(self) -> None:
        assert SortTerm.parse("name") == SortTerm("name", SortDirection.ASC)

    def test_descending(self) -> None:
        assert SortTerm.parse("city DESC") == SortTerm("city", SortDirection.DESC)

    @pytest.mark.parametrize("text", ["", "name sideways", "name asc extra"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValidationError):
            SortTerm.parse(text)

    def test_from_strings_skips_blank(self) -> None:
        options = SortOptions.from_strings(["name desc", "  ", "city"])

        assert [t.field for t in options.terms] == ["name", "city"]

    def test_from_strings_none(self) -> None:
        assert SortOptions.from_strings(None).terms == ()


class TestSearchTerm:
    """Tests for parsing the search text form."""

    def test_default_operator(self) -> None:
        assert SearchTerm.parse("name ada") == (SearchTerm("name", "ada"),)

    def test_explicit_operator(self) -> None:
        assert SearchTerm.parse("zip_code gte 97000") == (
            SearchTerm("zip_code", "97000", "gte"),
        )

    def test_value_with_spaces(self) -> None:
        assert SearchTerm.parse("name co ada love") == (
            SearchTerm("name", "ada love", "co"),
        )

    def test_operator_word_as_value(self) -> None:
        """A lone operator-like token is a value, not an operator."""
        assert SearchTerm.parse("name eq") == (SearchTerm("name", "eq"),)

    def test_leading_operator_word_is_the_operator(self) -> None:
        """With three or more tokens, an operator name in second place is the operator."""
        assert SearchTerm.parse("name Eq Smith") == (SearchTerm("name", "Smith", "eq"),)

    def test_explicit_operator_keeps_operator_word_in_value(self) -> None:
        assert SearchTerm.parse("name co Eq Smith") == (
            SearchTerm("name", "Eq Smith", "co"),
        )

    def test_alternatives(self) -> None:
        terms = SearchTerm.parse("city eq Portland | Salem")

        assert terms == (
            SearchTerm("city", "Portland", "eq"),
            SearchTerm("city", "Salem", "eq"),
        )

    @pytest.mark.parametrize("text", ["", "name", "name |"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValidationError):
            SearchTerm.parse(text)

    def test_from_strings_flattens(self) -> None:
        options = SearchOptions.from_strings(["city Portland | Salem", "name ada"])

        assert len(options.terms) == 3


class TestQueryComposer:
    """Tests for QueryComposer and Query evaluation."""

    @pytest.fixture
    def composer(self) -> QueryComposer:
        return QueryComposer(metadata_for(Member))

    @pytest.fixture
    def rows(self) -> list[Member]:
        rows = [
            _member("Charlie", city="Salem", zip_code=97301),
            _member("alice", city="Portland", zip_code=97201),
            _member("Bob", city="Portland", zip_code=97205, status=MemberStatus.SUSPENDED),
            _member("Dana", city="Eugene", zip_code=97401),
            _member("Alan", city="Salem", zip_code=97302),
        ]
        for i, row in enumerate(rows, start=1):
            row.id = i
        return rows

    def _names(self, query, rows) -> list[str]:
        return [m.name for m in query.apply(rows)]

    def test_default_sort(self, composer: QueryComposer, rows: list[Member]) -> None:
        """Without sort terms the declared default is used, ascending."""
        query = composer.compose()

        assert self._names(query, rows) == ["Alan", "Bob", "Charlie", "Dana", "alice"]

    def test_no_default_keeps_storage_order(self, rows: list[Member]) -> None:
        composer = QueryComposer(EntityMetadata(collection="members"))

        assert [m.id for m in composer.compose().apply(rows)] == [1, 2, 3, 4, 5]

    def test_multi_key_sort(self, composer: QueryComposer, rows: list[Member]) -> None:
        """First pair is primary, ties broken by the next pair."""
        query = composer.compose(sort=SortOptions.from_strings(["city desc", "zip_code desc"]))

        assert self._names(query, rows) == ["Alan", "Charlie", "Bob", "alice", "Dana"]

    def test_stable_ties(self, composer: QueryComposer, rows: list[Member]) -> None:
        """Equal keys keep identifier order."""
        query = composer.compose(sort=SortOptions.from_strings(["city"]))

        assert [m.id for m in query.apply(rows)] == [4, 2, 3, 1, 5]

    def test_paging(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(PagingOptions(offset=1, limit=2))

        assert self._names(query, rows) == ["Bob", "Charlie"]

    def test_offset_beyond_end(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(PagingOptions(offset=10, limit=5))

        assert list(query.apply(rows)) == []

    def test_contains_is_case_insensitive(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(search=SearchOptions.from_strings(["name AL"]))

        assert self._names(query, rows) == ["Alan", "alice"]

    def test_starts_with(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(search=SearchOptions.from_strings(["name sw a"]))

        assert self._names(query, rows) == ["Alan", "alice"]

    def test_value_starting_with_operator_word(self, composer: QueryComposer, rows: list[Member]) -> None:
        rows.append(_member("Eq Smith", city="Bend", zip_code=97701, id=6))

        implicit = composer.compose(search=SearchOptions.from_strings(["name Eq Smith"]))
        explicit = composer.compose(search=SearchOptions.from_strings(["name co Eq Smith"]))

        assert self._names(implicit, rows) == []
        assert self._names(explicit, rows) == ["Eq Smith"]

    def test_text_equals(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(search=SearchOptions.from_strings(["city eq portland"]))

        assert self._names(query, rows) == ["Bob", "alice"]

    def test_enum_field_search(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(search=SearchOptions.from_strings(["status suspended"]))

        assert self._names(query, rows) == ["Bob"]

    def test_or_within_field(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(
            search=SearchOptions.from_strings(["city eq Salem", "city eq Eugene"])
        )

        assert self._names(query, rows) == ["Alan", "Charlie", "Dana"]

    def test_and_across_fields(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(
            search=SearchOptions.from_strings(["city Salem", "zip_code gt 97301"])
        )

        assert self._names(query, rows) == ["Alan"]

    def test_typed_comparisons(self, composer: QueryComposer, rows: list[Member]) -> None:
        query = composer.compose(
            search=SearchOptions.from_strings(["zip_code gte 97205", "zip_code lt 97300"]),
        )

        # Same-field terms are ORed: every row satisfies one of the two
        assert len(list(query.apply(rows))) == 5

    def test_unsupported_operator(self, composer: QueryComposer) -> None:
        with pytest.raises(ValidationError, match="Operator 'gt'"):
            composer.compose(search=SearchOptions.from_strings(["name gt b"]))

    def test_unparsable_value(self, composer: QueryComposer) -> None:
        with pytest.raises(ValidationError):
            composer.compose(search=SearchOptions.from_strings(["zip_code abc"]))

    def test_undeclared_sort_field(self, composer: QueryComposer) -> None:
        """Never falls back silently to the default order."""
        with pytest.raises(ValidationError):
            composer.compose(sort=SortOptions.from_strings(["email"]))

    def test_invalid_paging(self, composer: QueryComposer) -> None:
        with pytest.raises(ValidationError):
            composer.compose(PagingOptions(limit=0))

    def test_deterministic(self, composer: QueryComposer, rows: list[Member]) -> None:
        sort = SortOptions.from_strings(["city", "name desc"])
        search = SearchOptions.from_strings(["zip_code gt 97000"])

        first = self._names(composer.compose(sort=sort, search=search), rows)
        second = self._names(composer.compose(sort=sort, search=search), rows)

        assert first == second

    def test_date_search_on_datetime_field(self) -> None:
        composer = QueryComposer(metadata_for(Transaction))
        rows = [
            Transaction(1, 1, 1, date(2024, 3, 1), created=datetime(2024, 3, 1, 9, tzinfo=timezone.utc), id=1),
            Transaction(1, 1, 1, date(2024, 3, 2), created=datetime(2024, 3, 2, 9, tzinfo=timezone.utc), id=2),
        ]

        query = composer.compose(search=SearchOptions.from_strings(["created eq 2024-03-02"]))

        assert [t.id for t in query.apply(rows)] == [2]

    def test_missing_values_never_match(self) -> None:
        composer = QueryComposer(metadata_for(Transaction))
        rows = [Transaction(1, 1, 1, date(2024, 3, 1), id=1)]

        query = composer.compose(search=SearchOptions.from_strings(["created gte 2000-01-01"]))

        assert list(query.apply(rows)) == []

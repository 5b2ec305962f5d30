"""Tests for the generic repository."""

from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from chocan.exceptions import ConcurrencyConflictError, StoreUnavailableError, ValidationError
from chocan.models import Member, Product, Transaction
from chocan.query import PagingOptions, SearchOptions, SortOptions
from chocan.repository import Repository


@pytest.fixture
def populated(members: Repository[Member]) -> Repository[Member]:
    """Members repository holding 7 members."""
    for name in ("Grace", "Ada", "Linus", "Barbara", "Ken", "Edsger", "Alan"):
        members.add(Member(name=name, city="Salem" if name < "F" else "Portland"))
    return members


class TestRepositoryCrud:
    """Tests for add/get/update/delete."""

    def test_add_then_get(self, members: Repository[Member], sample_member: Member) -> None:
        """The stored entity equals the added one except for its identifier."""
        expected = Member(**{**sample_member.__dict__})

        stored = members.add(sample_member)
        fetched = members.get(stored.id)

        assert stored.id == 1
        expected.id = stored.id
        assert fetched == expected

    def test_add_stamps_created(self, transactions: Repository[Transaction]) -> None:
        stored = transactions.add(Transaction(42, 7, 100, date(2024, 3, 15)))

        assert isinstance(stored.created, datetime)
        assert stored.created.tzinfo is not None

    def test_add_keeps_existing_created(self, transactions: Repository[Transaction]) -> None:
        created = datetime(2020, 1, 1)

        stored = transactions.add(Transaction(42, 7, 100, date(2024, 3, 15), created=created))

        assert stored.created == created

    def test_get_missing_returns_none(self, members: Repository[Member]) -> None:
        assert members.get(12345) is None

    def test_update(self, members: Repository[Member], sample_member: Member) -> None:
        members.add(sample_member)
        member = members.get(1)
        member.city = "Eugene"

        assert members.update(member) == 1
        assert members.get(1).city == "Eugene"

    def test_update_conflict(self, members: Repository[Member], sample_member: Member) -> None:
        members.add(sample_member)
        stale = members.get(1)
        members.update(members.get(1))

        with pytest.raises(ConcurrencyConflictError):
            members.update(stale)

    def test_delete(self, members: Repository[Member], sample_member: Member) -> None:
        members.add(sample_member)

        deleted = members.delete(1)

        assert deleted.name == sample_member.name
        assert members.get(1) is None

    def test_delete_missing_returns_none(self, members: Repository[Member]) -> None:
        """Not found is a normal outcome, not an error and not a silent success."""
        assert members.delete(999) is None


class TestRepositoryGetAll:
    """Tests for paged, sorted and filtered listing."""

    @pytest.mark.parametrize("limit", [1, 3, 7, 50, 100])
    def test_at_most_limit(self, populated: Repository[Member], limit: int) -> None:
        rows = list(populated.get_all(PagingOptions(limit=limit)))

        assert len(rows) == min(limit, 7)

    @pytest.mark.parametrize("offset,expected", [(0, 3), (5, 2), (6, 1)])
    def test_remaining_count(self, populated: Repository[Member], offset: int, expected: int) -> None:
        rows = list(populated.get_all(PagingOptions(offset=offset, limit=3)))

        assert len(rows) == expected

    @pytest.mark.parametrize("offset", [7, 8, 1000])
    def test_offset_beyond_count(self, populated: Repository[Member], offset: int) -> None:
        assert list(populated.get_all(PagingOptions(offset=offset, limit=10))) == []

    def test_default_order(self, populated: Repository[Member]) -> None:
        names = [m.name for m in populated.get_all()]

        assert names == ["Ada", "Alan", "Barbara", "Edsger", "Grace", "Ken", "Linus"]

    def test_deterministic(self, populated: Repository[Member]) -> None:
        sort = SortOptions.from_strings(["city desc"])
        search = SearchOptions.from_strings(["name co a"])

        first = [m.id for m in populated.get_all(sort=sort, search=search)]
        second = [m.id for m in populated.get_all(sort=sort, search=search)]

        assert first == second
        assert first

    def test_undeclared_sort_field_raises_immediately(self, populated: Repository[Member]) -> None:
        """Raised by the call itself, never a silent fallback to default order."""
        with pytest.raises(ValidationError):
            populated.get_all(sort=SortOptions.from_strings(["street_address"]))

    def test_invalid_paging_raises(self, populated: Repository[Member]) -> None:
        with pytest.raises(ValidationError):
            populated.get_all(PagingOptions(limit=101))

    def test_result_is_single_use(self, populated: Repository[Member]) -> None:
        rows = populated.get_all()

        assert len(list(rows)) == 7
        assert list(rows) == []

    def test_store_outage_propagates(self) -> None:
        store = MagicMock()
        store.query.side_effect = StoreUnavailableError("down")
        repository = Repository(Member, store)

        with pytest.raises(StoreUnavailableError):
            repository.get_all()


class TestRepositoryGetAllByName:
    """Tests for name search."""

    def test_substring_case_insensitive(self, populated: Repository[Member]) -> None:
        names = [m.name for m in populated.get_all_by_name("AR")]

        assert names == ["Barbara"]

    def test_no_match(self, populated: Repository[Member]) -> None:
        assert list(populated.get_all_by_name("zzz")) == []

    def test_pages_past_max_limit(self, products: Repository[Product]) -> None:
        for i in range(230):
            products.add(Product(name=f"Session {i:03d}"))

        rows = list(products.get_all_by_name("session"))

        assert len(rows) == 230
        assert len({p.id for p in rows}) == 230

    def test_rows_deleted_between_pages_do_not_skip(self, products: Repository[Product]) -> None:
        for i in range(230):
            products.add(Product(name=f"Session {i:03d}"))

        rows = products.get_all_by_name("session")
        first_page = [next(rows) for _ in range(100)]
        for product in first_page[:10]:
            products.delete(product.id)
        rest = list(rows)

        assert len(rest) == 130
        assert rest[0].id == first_page[-1].id + 1

    def test_rows_added_between_pages_do_not_repeat(self, products: Repository[Product]) -> None:
        for i in range(230):
            products.add(Product(name=f"Session {i:03d}"))

        rows = products.get_all_by_name("session")
        first_page = [next(rows) for _ in range(100)]
        late = products.add(Product(name="Session -01"))
        rest = list(rows)

        ids = [p.id for p in first_page + rest]
        assert len(ids) == len(set(ids)) == 231
        assert rest[-1].id == late.id

    def test_entity_without_name_field(self, transactions: Repository[Transaction]) -> None:
        transactions.add(Transaction(42, 7, 100, date(2024, 3, 15)))

        assert list(transactions.get_all_by_name("anything")) == []

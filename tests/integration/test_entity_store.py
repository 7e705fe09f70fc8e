"""
Integration tests for the read path over a SQLite EAV table.

Tests cover:
- Secondary-key id resolution and ordering
- Record fetch by id and by secondary key
- Project scoping
- Transactions
- Storage errors
"""

from unittest.mock import patch

import pytest

from repower.data.assembler import RecordAssembler
from repower.data.entity_store import EntityStore, Order
from repower.data.field_map import FieldNameMapper
from repower.data.query import QueryExecutor, StringParam
from repower.errors import RecordNotFoundError, StorageError


@pytest.fixture
def executor(eav_conn):
    return QueryExecutor(eav_conn)


@pytest.fixture
def store(executor):
    """Store for project 7 without aliases."""
    return EntityStore(7, executor, RecordAssembler(7))


@pytest.fixture
def trial(seed):
    """Three participants at one site, one elsewhere, one in another project."""
    seed(
        (7, "1", "site", "03"),
        (7, "1", "dob", "1990-01-01"),
        (7, "3", "site", "03"),
        (7, "3", "dob", "1985-06-30"),
        (7, "2", "site", "03", "baseline_arm_1"),
        (7, "2", "site", "03", "week_4_arm_1"),
        (7, "2", "dob", "1979-12-12", "baseline_arm_1"),
        (7, "4", "site", "05"),
        (8, "1", "site", "03"),
        (8, "9", "site", "03"),
    )


class TestResolveIds:
    """Tests for EntityStore.resolve_ids."""

    def test_ascending(self, store, trial):
        """Ids come back distinct and ascending."""
        assert store.resolve_ids("site", "03") == ["1", "2", "3"]

    def test_descending_is_exact_reverse(self, store, trial):
        """Descending order reverses ascending order."""
        ascending = store.resolve_ids("site", "03", Order.ASCENDING)
        descending = store.resolve_ids("site", "03", Order.DESCENDING)

        assert descending == list(reversed(ascending))

    def test_repeating_events_grouped(self, store, trial):
        """A record matching in several events appears once."""
        ids = store.resolve_ids("site", "03")

        assert ids.count("2") == 1

    def test_scoped_to_project(self, store, trial):
        """Other projects' records never match."""
        assert "9" not in store.resolve_ids("site", "03")

    def test_no_match(self, store, trial):
        """Zero matches is an empty list."""
        assert store.resolve_ids("site", "99") == []

    def test_int_value(self, store, seed):
        """Integer values bind as integers and still match stored text."""
        seed((7, "1", "age", "40"), (7, "2", "age", "41"))

        assert store.resolve_ids("age", 40) == ["1"]

    def test_tagged_value(self, store, seed):
        """Callers can pass an explicit bind tag."""
        seed((7, "1", "code", "007"))

        assert store.resolve_ids("code", StringParam("007")) == ["1"]

    def test_field_name_forward_mapped(self, executor, trial):
        """Lookups use the storage name of an aliased field."""
        store = EntityStore(7, executor, RecordAssembler(7, FieldNameMapper({"clinic": "site"})))

        assert store.resolve_ids("clinic", "03") == ["1", "2", "3"]

    def test_ids_sort_as_text(self, store, seed):
        """Record ids sort by text collation."""
        seed((7, "2", "site", "06"), (7, "10", "site", "06"))

        assert store.resolve_ids("site", "06") == ["10", "2"]
        assert store.resolve_first_id("site", "06") == "10"

    def test_resolve_first_id(self, store, trial):
        """First id follows the requested order."""
        assert store.resolve_first_id("site", "03") == "1"
        assert store.resolve_first_id("site", "03", Order.DESCENDING) == "3"

    def test_resolve_first_id_not_found(self, store, trial):
        """No match raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.resolve_first_id("site", "99")

        assert exc_info.value.field_name == "site"
        assert exc_info.value.value == "99"
        assert exc_info.value.project_id == 7


class TestFetch:
    """Tests for record fetching."""

    def test_fetch_record(self, store, trial):
        """All fields of a record are assembled."""
        assert store.fetch_record("1") == {"site": "03", "dob": "1990-01-01"}

    def test_fetch_record_int_id(self, store, trial):
        """Numeric ids are looked up as record strings."""
        assert store.fetch_record(1) == store.fetch_record("1")

    def test_fetch_unknown_record(self, store, trial):
        """A record without data is empty."""
        assert store.fetch_record("404") == {}

    def test_fetch_record_event(self, store, trial):
        """An event filter restricts the fields."""
        assert store.fetch_record("2", event_name="week_4_arm_1") == {"site": "03"}
        assert store.fetch_record("2", event_name="baseline_arm_1") == {
            "site": "03",
            "dob": "1979-12-12",
        }

    def test_fetch_record_scoped(self, store, trial):
        """Another project's record with the same id is invisible."""
        assert store.fetch_record("9") == {}

    def test_get_by_record_short_circuit(self, store, trial):
        """The record field fetches by id without a lookup query."""
        with patch.object(store, "resolve_ids", wraps=store.resolve_ids) as resolve:
            record = store.get_by("record", "3")

        assert record == store.fetch_record("3")
        resolve.assert_not_called()

    def test_get_by_field(self, store, trial):
        """Secondary-key lookup fetches the first match."""
        assert store.get_by("dob", "1985-06-30") == {"site": "03", "dob": "1985-06-30"}

    def test_get_by_not_found(self, store, trial):
        """Zero matches raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            store.get_by("dob", "2000-01-01")

    def test_get_all_by(self, store, trial):
        """Every match is fetched, in id order."""
        records = store.get_all_by("site", "03")

        assert [r["dob"] for r in records] == ["1990-01-01", "1979-12-12", "1985-06-30"]

    def test_get_all_by_none(self, store, trial):
        """No match is an empty list."""
        assert store.get_all_by("site", "99") == []

    def test_aliased_record(self, executor, seed):
        """Reads return application field names."""
        seed((7, "1", "dob", "1990-01-01"))
        store = EntityStore(7, executor, RecordAssembler(7, FieldNameMapper({"dob_alias": "dob"})))

        assert store.get_by("dob_alias", "1990-01-01") == {"dob_alias": "1990-01-01"}


class TestTransactions:
    """Tests for transaction control."""

    def test_reads_within_transaction(self, store, trial):
        """Reads work inside an explicit transaction."""
        store.begin()
        ids = store.resolve_ids("site", "03")
        record = store.fetch_record(ids[0])
        store.commit()

        assert record["dob"] == "1990-01-01"

    def test_context_manager_commits(self, store, seed, eav_conn):
        """Work in a transaction block is committed."""
        with store.transaction():
            seed((7, "1", "dob", "1990-01-01"))

        assert eav_conn.in_transaction is False
        assert store.fetch_record("1") == {"dob": "1990-01-01"}

    def test_context_manager_rolls_back(self, store, seed, eav_conn):
        """An exception rolls back and propagates."""
        with pytest.raises(RuntimeError):
            with store.transaction():
                seed((7, "1", "dob", "1990-01-01"))
                raise RuntimeError("boom")

        assert eav_conn.in_transaction is False
        assert store.fetch_record("1") == {}

    def test_rollback_delegates(self, store, eav_conn):
        """begin/rollback toggle the connection's transaction."""
        store.begin()
        assert eav_conn.in_transaction is True
        store.rollback()
        assert eav_conn.in_transaction is False


class TestStorageErrors:
    """Tests for storage failures."""

    def test_missing_table(self, executor):
        """A failing query raises instead of looking like zero rows."""
        store = EntityStore(7, executor, RecordAssembler(7), table="missing_table")

        with pytest.raises(StorageError):
            store.resolve_ids("site", "03")
        with pytest.raises(StorageError):
            store.get_by("record", "1")

    def test_invalid_table_name(self, executor):
        """Table names are restricted to identifiers."""
        with pytest.raises(ValueError):
            EntityStore(7, executor, RecordAssembler(7), table="redcap_data; DROP TABLE x")

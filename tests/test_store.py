"""Tests for the transaction store: load, add, delete, import, export."""

import json
import math
import pytest
from datetime import date
from unittest.mock import MagicMock

from conftest import make_transaction

from katha.models.transaction import TransactionCandidate, TransactionType
from katha.services.storage import CorruptStoreError, FileBlobStorage, InMemoryBlobStorage
from katha.store import (
    InvalidImportError,
    TimestampIdGenerator,
    TransactionStore,
    create_store,
)
from katha.validation import FormValidationError


def candidate(**overrides) -> TransactionCandidate:
    fields = {
        "date": "2024-03-01",
        "type": "expense",
        "amount": "40",
        "category": "Food",
        "description": "Groceries",
    }
    fields.update(overrides)
    return TransactionCandidate(**fields)


class TestTimestampIdGenerator:
    """Tests for id generation."""

    def test_uses_milliseconds(self):
        generator = TimestampIdGenerator(clock=lambda: 1709251200.123)
        assert generator() == "1709251200123"

    def test_same_tick_ids_are_unique(self):
        """Test that a frozen clock still yields distinct, increasing ids."""
        generator = TimestampIdGenerator(clock=lambda: 1000.0)
        ids = [generator() for _ in range(5)]
        assert ids == ["1000000", "1000001", "1000002", "1000003", "1000004"]

    def test_clock_going_backwards(self):
        times = iter([2.0, 1.0])
        generator = TimestampIdGenerator(clock=lambda: next(times))
        assert int(generator()) < int(generator())

    def test_tight_loop_with_real_clock(self):
        generator = TimestampIdGenerator()
        ids = [generator() for _ in range(1000)]
        assert len(set(ids)) == 1000


class TestLoad:
    """Tests for session start."""

    def test_missing_blob_is_empty(self, memory_storage):
        store = TransactionStore(storage=memory_storage)
        assert store.load() == 0
        assert store.transactions == ()
        assert store.is_loaded is True

    def test_load_parses_records(self):
        blob = json.dumps([
            {"id": "1", "date": "2024-03-01", "type": "income", "amount": 100,
             "category": "Salary", "description": "Pay"},
        ]).encode()
        store = TransactionStore(storage=InMemoryBlobStorage(blob))
        assert store.load() == 1
        assert store.transactions[0].date == date(2024, 3, 1)

    def test_load_drops_invalid_records(self):
        blob = json.dumps([
            {"id": "1", "date": "2024-03-01", "type": "income", "amount": 100,
             "category": "Salary", "description": "Pay"},
            {"id": "2", "date": "garbage"},
        ]).encode()
        audit = MagicMock()
        store = TransactionStore(storage=InMemoryBlobStorage(blob), audit_logger=audit)

        assert store.load() == 1
        count, rejected = audit.log_store_loaded.call_args.args[:2]
        assert count == 1
        assert rejected[0].index == 1

    def test_load_does_not_rewrite_blob(self):
        storage = InMemoryBlobStorage(b"[]")
        TransactionStore(storage=storage).load()
        assert storage.write_count == 0

    def test_corrupt_blob_raises(self):
        store = TransactionStore(storage=InMemoryBlobStorage(b"{not json"))
        with pytest.raises(CorruptStoreError):
            store.load()

    def test_non_list_blob_raises(self):
        store = TransactionStore(storage=InMemoryBlobStorage(b'{"id": "1"}'))
        with pytest.raises(CorruptStoreError):
            store.load()


class TestAdd:
    """Tests for adding transactions."""

    def test_add_appends_and_returns_id(self, store):
        transaction_id = store.add(candidate())
        assert transaction_id == "tx-1"
        assert len(store) == 1
        assert store.get("tx-1").amount == 40.0

    def test_add_appends_in_insertion_order_not_date_order(self, store):
        store.add(candidate(date="2024-03-20"))
        store.add(candidate(date="2024-03-01"))
        assert [t.date.day for t in store.transactions] == [20, 1]

    def test_add_persists_full_list(self, store, memory_storage):
        store.add(candidate())
        store.add(candidate(type="income", amount="100"))

        persisted = json.loads(memory_storage.data)
        assert memory_storage.write_count == 2
        assert [record["id"] for record in persisted] == ["tx-1", "tx-2"]
        assert persisted[1] == {
            "id": "tx-2",
            "date": "2024-03-01",
            "type": "income",
            "amount": 100.0,
            "category": "Food",
            "description": "Groceries",
        }

    def test_add_stores_nan_for_non_numeric_amount(self, store):
        transaction_id = store.add(candidate(amount="forty"))
        assert math.isnan(store.get(transaction_id).amount)

    def test_non_numeric_amount_warns_before_saving(self, store):
        """Test that the form can tell the user their amount becomes NaN."""
        entry = candidate(amount="abc")
        is_valid, issues = store.validator.validate_candidate(entry)
        warnings = [issue for issue in issues if issue.severity == "warning"]

        assert is_valid is True
        assert [issue.field for issue in warnings] == ["amount"]
        summary = store.validator.get_user_friendly_summary(warnings)
        assert summary.startswith("Please verify the following:")
        assert "stored as NaN" in summary

        assert math.isnan(store.get(store.add(entry)).amount)

    def test_add_rejects_broken_form(self, store, memory_storage):
        with pytest.raises(FormValidationError):
            store.add(candidate(description=""))
        assert len(store) == 0
        assert memory_storage.write_count == 0

    def test_add_skips_ids_already_in_use(self, memory_storage):
        ids = iter(["dup", "dup", "fresh"])
        store = TransactionStore(storage=memory_storage, id_generator=lambda: next(ids))
        store.load()
        store.add(candidate())
        assert store.add(candidate()) == "fresh"

    def test_add_audits(self, memory_storage, sequential_ids):
        audit = MagicMock()
        store = TransactionStore(
            storage=memory_storage, audit_logger=audit, id_generator=sequential_ids
        )
        store.add(candidate())
        audit.log_transaction_added.assert_called_once()


class TestDelete:
    """Tests for deleting transactions."""

    def test_add_then_delete_restores_sequence(self, store):
        store.add(candidate(description="first"))
        store.add(candidate(description="second"))
        before = store.transactions

        new_id = store.add(candidate(description="third"))
        assert store.delete(new_id) is True
        assert store.transactions == before

    def test_delete_unknown_id_is_noop(self, store):
        store.add(candidate(description="first"))
        store.add(candidate(description="second"))
        before = store.transactions

        assert store.delete("no-such-id") is False
        assert store.transactions == before

    def test_delete_persists(self, store, memory_storage):
        transaction_id = store.add(candidate())
        store.delete(transaction_id)
        assert json.loads(memory_storage.data) == []

    def test_delete_removes_only_first_match(self, memory_storage):
        store = TransactionStore(storage=memory_storage)
        store.replace_all([
            make_transaction("same", date(2024, 3, 1), description="a"),
            make_transaction("same", date(2024, 3, 2), description="b"),
        ])
        store.delete("same")
        assert [t.description for t in store.transactions] == ["b"]


class TestImportExport:
    """Tests for backup export and restore."""

    def test_export_is_indented_json(self, store, march_2024):
        store.replace_all(march_2024)
        exported = store.export()
        assert exported.startswith("[\n  {")
        assert json.loads(exported)[0]["id"] == "1"

    def test_export_then_import_round_trip(self, store, march_2024):
        store.replace_all(march_2024)
        before = store.transactions

        exported = store.export()
        store.replace_all([])
        result = store.import_json(exported)

        assert result.accepted_count == 3
        assert result.is_clean is True
        assert store.transactions == before

    def test_import_keeps_ids_and_file_order(self, store):
        text = json.dumps([
            {"id": "z", "date": "2024-03-05", "type": "expense", "amount": 1,
             "category": "c", "description": "d"},
            {"id": "a", "date": "2024-03-01", "type": "income", "amount": 2,
             "category": "c", "description": "d"},
        ])
        store.import_json(text)
        assert [t.id for t in store.transactions] == ["z", "a"]

    def test_import_invalid_json_leaves_store_unchanged(self, store, memory_storage):
        store.add(candidate())
        before = store.transactions
        writes = memory_storage.write_count

        with pytest.raises(InvalidImportError) as exc_info:
            store.import_json("{not json")

        assert "Invalid file format" in str(exc_info.value)
        assert store.transactions == before
        assert memory_storage.write_count == writes

    def test_import_non_array_is_rejected(self, store):
        store.add(candidate())
        with pytest.raises(InvalidImportError):
            store.import_json('{"id": "1"}')
        assert len(store) == 1

    def test_import_drops_invalid_records(self, store):
        text = json.dumps([
            {"id": "1", "date": "2024-03-01", "type": "income", "amount": 100,
             "category": "Salary", "description": "Pay"},
            {"id": "2", "date": "2024-03-02", "type": "bonus", "amount": 5,
             "category": "x", "description": "y"},
            "stray",
        ])
        result = store.import_json(text)

        assert result.accepted_count == 1
        assert [r.index for r in result.rejected] == [1, 2]
        assert [t.id for t in store.transactions] == ["1"]

    def test_import_replaces_everything(self, store, march_2024):
        store.add(candidate())
        store.import_json(json.dumps([t.to_record() for t in march_2024[:1]]))
        assert [t.id for t in store.transactions] == ["1"]

    def test_import_file(self, store, tmp_path, march_2024):
        path = tmp_path / "backup.json"
        path.write_text(json.dumps([t.to_record() for t in march_2024]), encoding="utf-8")
        result = store.import_file(path)
        assert result.accepted_count == 3

    def test_import_missing_file(self, store, tmp_path):
        with pytest.raises(InvalidImportError):
            store.import_file(tmp_path / "missing.json")

    def test_export_filename(self, store):
        assert store.export_filename(date(2024, 3, 15)) == "katha-backup-2024-03-15.json"

    def test_export_filename_defaults_to_today(self, store):
        assert store.export_filename() == f"katha-backup-{date.today().isoformat()}.json"

    def test_export_to_directory(self, store, tmp_path, march_2024):
        store.replace_all(march_2024)
        path = store.export_to(tmp_path / "backups", today=date(2024, 5, 1))

        assert path.name == "katha-backup-2024-05-01.json"
        assert json.loads(path.read_text(encoding="utf-8")) == [t.to_record() for t in march_2024]

    def test_export_nan_survives_import(self, store):
        store.add(candidate(amount="n/a"))
        exported = store.export()
        store.import_json(exported)
        assert math.isnan(store.transactions[0].amount)


class TestFilePersistence:
    """Tests for a store backed by a file across sessions."""

    def test_new_session_sees_saved_transactions(self, tmp_path):
        path = tmp_path / "katha-transactions.json"

        first = TransactionStore(storage=FileBlobStorage(path))
        first.load()
        first.add(candidate(type=TransactionType.INCOME.value, amount="100"))
        first.add(candidate())

        second = TransactionStore(storage=FileBlobStorage(path))
        second.load()
        assert second.transactions == first.transactions

    def test_create_store_uses_settings(self, tmp_path):
        store = create_store()
        store.load()
        store.add(candidate())
        assert (tmp_path / "data" / "katha-transactions.json").exists()

    def test_create_store_export_prefix(self, monkeypatch):
        monkeypatch.setenv("KATHA_EXPORT_PREFIX", "ledger")
        store = create_store(storage=InMemoryBlobStorage())
        assert store.export_filename(date(2024, 1, 2)) == "ledger-2024-01-02.json"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Shared fixtures: in-memory persistence and a store with predictable ids."""

from datetime import date
from itertools import count

import pytest

from katha.config import get_settings
from katha.models.transaction import Transaction, TransactionType
from katha.services.storage import InMemoryBlobStorage
from katha.store import TransactionStore


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path, monkeypatch):
    """Point file storage at the test's own directory and drop cached settings."""
    monkeypatch.setenv("KATHA_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def memory_storage():
    return InMemoryBlobStorage()


@pytest.fixture
def sequential_ids():
    """Id generator yielding 'tx-1', 'tx-2', ..."""
    counter = count(1)
    return lambda: f"tx-{next(counter)}"


@pytest.fixture
def store(memory_storage, sequential_ids):
    """A loaded, empty store backed by memory."""
    store = TransactionStore(storage=memory_storage, id_generator=sequential_ids)
    store.load()
    return store


def make_transaction(
    id: str,
    day: date,
    type: TransactionType = TransactionType.EXPENSE,
    amount: float = 10.0,
    category: str = "Food",
    description: str = "Lunch",
) -> Transaction:
    return Transaction(
        id=id,
        date=day,
        type=type,
        amount=amount,
        category=category,
        description=description,
    )


@pytest.fixture
def march_2024():
    """The three-record example: two in March 2024, one in April."""
    return [
        make_transaction("1", date(2024, 3, 1), TransactionType.INCOME, 100.0, "Salary", "Pay"),
        make_transaction("2", date(2024, 3, 15), TransactionType.EXPENSE, 40.0, "Food", "Groceries"),
        make_transaction("3", date(2024, 4, 1), TransactionType.INCOME, 10.0, "Gift", "Birthday"),
    ]

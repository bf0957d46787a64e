"""
Transaction Store for Katha

This module owns the authoritative list of transactions and defines
the operations that change it:
1. load (once per session, before the first render)
2. add / delete
3. import (wholesale replace) / export

DESIGN DECISION: The store is an explicit object built with an
injected persistence backend. There is no module-level singleton;
the Streamlit page keeps one instance per process.

Every mutation rewrites the whole persisted blob before returning,
and every mutation is audited.
"""

import datetime
import json
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from katha.audit import AuditLogger
from katha.config import get_settings
from katha.models.transaction import (
    ImportResult,
    Transaction,
    TransactionCandidate,
    dump_transactions,
)
from katha.services.storage import (
    CorruptStoreError,
    TransactionBlobStorage,
    create_blob_storage,
)
from katha.validation import TransactionValidator


class InvalidImportError(ValueError):
    """Import text is not a JSON array. The store was left unchanged."""

    user_message = "Invalid file format"


class TimestampIdGenerator:
    """
    Issues ids from the wall clock in milliseconds.

    Ids are strictly increasing within a process: when two ids are
    requested in the same millisecond (or the clock steps back) the
    next id is the previous one plus one.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        now_ms = int(self._clock() * 1000)
        self._last = max(now_ms, self._last + 1)
        return str(self._last)


class TransactionStore:
    """
    The authoritative, ordered list of transactions.

    Order is insertion order (add appends, import keeps file order).
    Nothing here sorts by date.
    """

    def __init__(
        self,
        storage: TransactionBlobStorage,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_generator: Optional[Callable[[], str]] = None,
        export_prefix: str = "katha-backup",
    ):
        self._storage = storage
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger
        self._id_generator = id_generator or TimestampIdGenerator()
        self._export_prefix = export_prefix
        self._transactions: list[Transaction] = []
        self._loaded = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """Snapshot of the current list, safe to hand to the aggregation queries."""
        return tuple(self._transactions)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def validator(self) -> TransactionValidator:
        """The validator add() uses, for checking form input before saving."""
        return self._validator

    def __len__(self) -> int:
        return len(self._transactions)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        """First transaction with the given id, or None."""
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    # ------------------------------------------------------------------
    # Session start
    # ------------------------------------------------------------------

    def load(self) -> int:
        """
        Read the persisted list into memory.

        A missing blob means an empty list. Records that are not valid
        transactions are dropped and audited.

        Returns:
            Number of transactions loaded

        Raises:
            CorruptStoreError: If the blob is not a JSON array
            StorageError: If the backend cannot be read
        """
        blob = self._storage.read()

        if blob is None:
            self._transactions = []
            self._loaded = True
            if self._audit_logger:
                self._audit_logger.log_store_loaded(0, [], found=False)
            return 0

        try:
            records = json.loads(blob)
        except ValueError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="corrupt_store",
                    error_message=str(e),
                    details={"location": self._storage.describe()},
                )
            raise CorruptStoreError(
                f"Saved transactions at {self._storage.describe()} are not valid JSON: {e}"
            )

        if not isinstance(records, list):
            message = f"expected a JSON array, found {type(records).__name__}"
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="corrupt_store",
                    error_message=message,
                    details={"location": self._storage.describe()},
                )
            raise CorruptStoreError(
                f"Saved transactions at {self._storage.describe()} are not a list: {message}"
            )

        accepted, rejected = self._validator.check_records(records)
        self._transactions = accepted
        self._loaded = True

        if self._audit_logger:
            self._audit_logger.log_store_loaded(len(accepted), rejected, found=True)

        return len(accepted)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, candidate: TransactionCandidate) -> str:
        """
        Append a new transaction built from form input.

        The amount text is parsed leniently; text that is not a number
        is stored as NaN.

        Returns:
            The new transaction's id

        Raises:
            FormValidationError: If a required field is missing or invalid
        """
        transaction = self._validator.build_transaction(candidate, self._next_id())

        self._transactions.append(transaction)
        self._persist()

        if self._audit_logger:
            self._audit_logger.log_transaction_added(transaction)

        return transaction.id

    def delete(self, transaction_id: str) -> bool:
        """
        Remove the first transaction with the given id.

        An unknown id leaves the list unchanged and is not an error.

        Returns:
            True if a transaction was removed
        """
        removed = False
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                del self._transactions[index]
                removed = True
                break

        self._persist()

        if self._audit_logger:
            self._audit_logger.log_transaction_deleted(transaction_id, found=removed)

        return removed

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        """Discard the current list and replace it wholesale."""
        previous_count = len(self._transactions)

        self._transactions = list(transactions)
        self._persist()

        if self._audit_logger:
            self._audit_logger.log_transactions_replaced(
                previous_count, len(self._transactions)
            )

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_json(
        self,
        text: Union[str, bytes],
        source: Optional[str] = None,
    ) -> ImportResult:
        """
        Replace the whole list with the records in a JSON document.

        Records that are not valid transactions are dropped and listed
        in the result; the rest replace the current list in file order.
        Their ids are kept as they are.

        Raises:
            InvalidImportError: If the text is not a JSON array.
                                The store is left unchanged.
        """
        try:
            records = json.loads(text)
        except ValueError as e:
            if self._audit_logger:
                self._audit_logger.log_import_failed(str(e), source)
            raise InvalidImportError(f"Invalid file format: {e}")

        if not isinstance(records, list):
            message = f"expected a JSON array of transactions, got {type(records).__name__}"
            if self._audit_logger:
                self._audit_logger.log_import_failed(message, source)
            raise InvalidImportError(f"Invalid file format: {message}")

        accepted, rejected = self._validator.check_records(records)
        self.replace_all(accepted)

        if self._audit_logger:
            self._audit_logger.log_import_completed(len(accepted), rejected, source)

        return ImportResult(accepted_count=len(accepted), rejected=rejected)

    def import_file(self, path: Union[str, Path]) -> ImportResult:
        """Read a backup file and import it (see import_json)."""
        path = Path(path)
        try:
            text = path.read_bytes()
        except OSError as e:
            if self._audit_logger:
                self._audit_logger.log_import_failed(str(e), str(path))
            raise InvalidImportError(f"Could not read {path}: {e}")
        return self.import_json(text, source=str(path))

    def export(self) -> str:
        """Pretty-printed (2-space indent) JSON array of the whole list."""
        return dump_transactions(self._transactions, indent=2)

    def export_filename(self, today: Optional[datetime.date] = None) -> str:
        """Backup file name for the given day, e.g. katha-backup-2024-03-15.json."""
        today = today or datetime.date.today()
        return f"{self._export_prefix}-{today.isoformat()}.json"

    def export_to(
        self,
        directory: Union[str, Path],
        today: Optional[datetime.date] = None,
    ) -> Path:
        """
        Write the export into a directory under the conventional name.

        Returns:
            Path of the written file
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        path = directory / self.export_filename(today)
        path.write_text(self.export(), encoding="utf-8")
        self.record_export(path.name)

        return path

    def record_export(self, filename: str) -> None:
        """
        Audit an export handed to the user under the given file name.

        export() only builds the text; whoever delivers it (a file
        write, a browser download) calls this once it has.
        """
        if self._audit_logger:
            self._audit_logger.log_export_completed(filename, len(self._transactions))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_id(self) -> str:
        """An id from the generator that no current transaction uses."""
        existing = {transaction.id for transaction in self._transactions}
        transaction_id = self._id_generator()
        while transaction_id in existing:
            transaction_id = self._id_generator()
        return transaction_id

    def _persist(self) -> None:
        self._storage.write(dump_transactions(self._transactions).encode("utf-8"))


def create_store(
    storage: Optional[TransactionBlobStorage] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> TransactionStore:
    """
    Factory function to create a store from settings.

    Args:
        storage: Persistence backend; the configured one if None
        audit_logger: Audit logger; a local structlog one if None

    The returned store is not loaded yet; call load() once.
    """
    settings = get_settings()

    return TransactionStore(
        storage=storage or create_blob_storage(settings.storage),
        audit_logger=audit_logger or AuditLogger(),
        export_prefix=settings.app.export_prefix,
    )


def describe_record(record: Any) -> str:
    """Short label for a rejected record, for display."""
    if isinstance(record, dict):
        return f"{record.get('date', '?')} {record.get('description', '')}".strip()
    return repr(record)[:60]

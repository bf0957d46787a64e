"""
Local Storage Implementations

DESIGN DECISION: The transaction list lives in one JSON file per
storage key because:
1. The user can open and back up the file directly
2. No database setup required
3. The list is small (single user, manual entry)

TRADEOFFS:
- Every save rewrites the whole file (fine for personal use)
- No locking (one user, one process)

InMemoryBlobStorage holds the blob in a bytes attribute and is what
the tests inject.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from katha.config import StorageSettings, get_settings
from katha.services.storage.interface import (
    StorageError,
    TransactionBlobStorage,
)


class InMemoryBlobStorage(TransactionBlobStorage):
    """
    Keeps the blob in memory.

    write_count lets tests check that every mutation persisted.
    """

    def __init__(self, initial: Optional[bytes] = None):
        self._data = initial
        self.write_count = 0

    def read(self) -> Optional[bytes]:
        return self._data

    def write(self, data: bytes) -> None:
        self._data = bytes(data)
        self.write_count += 1

    @property
    def data(self) -> Optional[bytes]:
        return self._data

    def describe(self) -> str:
        return "memory"


class FileBlobStorage(TransactionBlobStorage):
    """
    Keeps the blob in a single file.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash mid-write leaves the old blob intact.
    """

    def __init__(self, path: Path):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[bytes]:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

    def write(self, data: bytes) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def describe(self) -> str:
        return str(self._path)


def create_blob_storage(
    settings: Optional[StorageSettings] = None,
) -> TransactionBlobStorage:
    """
    Factory for the configured persistence backend.

    Args:
        settings: Storage settings; loaded from the environment if None
    """
    settings = settings or get_settings().storage

    if settings.backend == "memory":
        return InMemoryBlobStorage()
    return FileBlobStorage(settings.blob_path)

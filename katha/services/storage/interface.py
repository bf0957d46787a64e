"""
Abstract Storage Interface

DESIGN DECISION: The store persists through a tiny key-value style
interface: read the whole blob, write the whole blob.
This allows us to:
1. Keep the transaction list in a local JSON file
2. Use in-memory storage for testing
3. Swap in another backend without touching the store

There is no incremental persistence and no transaction log. Every
write replaces the previous blob.
"""

from abc import ABC, abstractmethod
from typing import Optional


class TransactionBlobStorage(ABC):
    """
    Abstract interface for the persisted transaction list.

    The blob is the UTF-8 encoded JSON array of all transactions.
    Implementations never look inside it.
    """

    @abstractmethod
    def read(self) -> Optional[bytes]:
        """
        Read the persisted blob.

        Returns:
            The blob, or None if nothing has been saved yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Replace the persisted blob.

        Args:
            data: The complete serialized transaction list

        Raises:
            StorageError: If the write fails
        """
        pass

    def describe(self) -> str:
        """Short human-readable location of the blob."""
        return self.__class__.__name__


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStoreError(StorageError):
    """The persisted blob is not a JSON array of records."""
    pass

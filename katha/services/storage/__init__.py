"""
Storage Services Package

Provides the abstract blob interface and local implementations.
Currently persists to a JSON file, but designed to be swappable.
"""

from katha.services.storage.interface import (
    CorruptStoreError,
    StorageError,
    TransactionBlobStorage,
)
from katha.services.storage.local import (
    FileBlobStorage,
    InMemoryBlobStorage,
    create_blob_storage,
)

__all__ = [
    # Interfaces
    "TransactionBlobStorage",
    # Exceptions
    "CorruptStoreError",
    "StorageError",
    # Local implementations
    "FileBlobStorage",
    "InMemoryBlobStorage",
    "create_blob_storage",
]

"""Services package."""

from katha.services.storage import (
    CorruptStoreError,
    FileBlobStorage,
    InMemoryBlobStorage,
    StorageError,
    TransactionBlobStorage,
    create_blob_storage,
)

__all__ = [
    # Storage services
    "CorruptStoreError",
    "FileBlobStorage",
    "InMemoryBlobStorage",
    "StorageError",
    "TransactionBlobStorage",
    "create_blob_storage",
]

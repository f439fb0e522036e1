"""Paste storage backends."""

from pobbin.config import Settings, StorageBackend
from pobbin.storage.base import Storage, TransientStorageError
from pobbin.storage.local import LocalStorage
from pobbin.storage.memory import MemoryStorage
from pobbin.storage.retry import RetryingStorage
from pobbin.storage.s3 import S3Storage

__all__ = ["Storage", "TransientStorageError", "RetryingStorage", "build_storage"]


def build_storage(settings: Settings) -> RetryingStorage:
    """Create the configured storage backend, wrapped in the retry policy."""
    backend: Storage
    if settings.storage_backend == StorageBackend.s3:
        backend = S3Storage(settings.s3_bucket)
    elif settings.storage_backend == StorageBackend.memory:
        backend = MemoryStorage()
    else:
        backend = LocalStorage(settings.storage_path)
    return RetryingStorage(backend, retries=settings.storage_retries, backoff=settings.storage_retry_backoff)

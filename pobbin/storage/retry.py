import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from pobbin.errors import StorageError
from pobbin.storage.base import Storage, TransientStorageError

T = TypeVar("T")

MAX_BACKOFF = 5.0


class RetryingStorage:
    """
    Wraps a storage backend and retries calls that fail with a TransientStorageError.
    Any other exception, and a missing object (None), is passed on immediately.
    After `retries` failed retries a StorageError is raised.
    """

    def __init__(self, backend: Storage, retries: int = 3, backoff: float = 0.1):
        self.backend = backend
        self.retries = retries
        self.backoff = backoff

    async def get(self, key: str) -> bytes | None:
        return await self._with_retry(f"get {key}", lambda: self.backend.get(key))

    async def put(self, key: str, data: bytes, sha1: bytes | None = None) -> None:
        await self._with_retry(f"put {key}", lambda: self.backend.put(key, data, sha1=sha1))

    async def _with_retry(self, what: str, call: Callable[[], Awaitable[T]]) -> T:
        attempts = self.retries + 1
        for attempt in range(self.retries):
            try:
                return await call()
            except TransientStorageError as e:
                wait_time = min(self.backoff * 2**attempt, MAX_BACKOFF)
                logging.warning(f"Storage {what} failed: {e}, retrying in {wait_time}s (attempt {attempt + 1}/{attempts})")
                await asyncio.sleep(wait_time)
        try:
            return await call()
        except TransientStorageError as e:
            logging.error(f"Storage {what} failed after {attempts} attempts: {e}")
            raise StorageError("Storage backend unavailable, please try again later") from e

from typing import Protocol


class TransientStorageError(Exception):
    """A storage call failed in a way that might succeed when tried again (network, 5xx, throttling)."""


class Storage(Protocol):
    async def get(self, key: str) -> bytes | None:
        """Return the object stored under key, or None if there is no such object."""
        ...

    async def put(self, key: str, data: bytes, sha1: bytes | None = None) -> None:
        """Store data under key. Storing the same data under the same key again has no further effect."""
        ...

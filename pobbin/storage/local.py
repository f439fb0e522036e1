"""
Store pastes as files on the local disk.

Keys map to paths below the storage root. A paste is written to a temporary file first and then
renamed into place, so readers never see half-written pastes and concurrent uploads of the same
paste simply replace each other.
"""

import uuid
from pathlib import Path

import anyio

from pobbin.storage.base import TransientStorageError


class LocalStorage:
    def __init__(self, root: Path | str):
        self.root = anyio.Path(root)

    def _path(self, key: str) -> anyio.Path:
        parts = key.split("/")
        if any(part in ("", ".", "..") for part in parts):
            raise ValueError(f"Invalid storage key {key!r}")
        return self.root.joinpath(*parts)

    async def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return await path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise TransientStorageError(f"Reading {path} failed: {e}") from e

    async def put(self, key: str, data: bytes, sha1: bytes | None = None) -> None:
        path = self._path(key)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await path.parent.mkdir(parents=True, exist_ok=True)
            await tmp.write_bytes(data)
            await tmp.replace(path)
        except OSError as e:
            raise TransientStorageError(f"Writing {path} failed: {e}") from e
        finally:
            if await tmp.exists():
                await tmp.unlink()

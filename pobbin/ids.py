"""
Content addressing: from raw paste bytes to a public id and a storage key.

The id is the URL-safe base64 encoding of the SHA-1 of the uploaded bytes, truncated to a few
characters. Identical uploads always get the same id, so storing a paste twice is harmless.
"""

import asyncio
import base64
import hashlib
import re

from pobbin.errors import BadRequest

STORAGE_PREFIX = "paste/"
MAX_ID_LENGTH = 32
ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
ID_PATTERN = re.compile(rf"[A-Za-z0-9_-]{{1,{MAX_ID_LENGTH}}}")

HASH_CHUNK_SIZE = 64 * 1024


async def sha1(data: bytes) -> bytes:
    """
    Hash the paste in chunks, yielding to the event loop in between
    so large uploads don't stall other requests.
    """
    h = hashlib.sha1()
    view = memoryview(data)
    for start in range(0, len(view), HASH_CHUNK_SIZE):
        h.update(view[start : start + HASH_CHUNK_SIZE])
        await asyncio.sleep(0)
    return h.digest()


def hash_to_short_id(digest: bytes, length: int = 9) -> str:
    encoded = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
    if not 0 < length <= len(encoded):
        raise ValueError(f"Cannot make an id of {length} characters from a {len(digest)} byte digest")
    return encoded[:length]


def to_path(paste_id: str) -> str:
    """Storage key for a paste id. Raises BadRequest for anything that is not a plausible id."""
    if not ID_PATTERN.fullmatch(paste_id):
        raise BadRequest(f"Invalid paste id: {paste_id[:MAX_ID_LENGTH]!r}")
    return f"{STORAGE_PREFIX}{paste_id}"

"""
An in-process stand-in for an edge (CDN) cache.

Responses are stored under the normalized request that produced them and expire according to their
own Cache-Control header, independent of how long the paste itself lives in storage.
"""

import re
import time
from collections import OrderedDict
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import URL

_MAX_AGE = re.compile(r"(?:^|,)\s*(?:s-maxage|max-age)\s*=\s*(\d+)", re.IGNORECASE)
_NO_STORE = re.compile(r"(?:^|,)\s*(?:no-store|private)\s*(?:,|=|$)", re.IGNORECASE)

# headers that describe a single transfer and must not be replayed from the cache
HOP_HEADERS = {"connection", "keep-alive", "transfer-encoding", "set-cookie", "date"}


@dataclass(frozen=True)
class CachedResponse:
    status_code: int
    headers: list[tuple[str, str]]
    body: bytes
    expires_at: float


def cache_key(method: str, url: URL) -> str:
    """Normalize a request: same method, host, path and query parameters (in any order) is the same key."""
    query = urlencode(sorted(parse_qsl(url.query, keep_blank_values=True)))
    host = (url.hostname or "").lower()
    port = f":{url.port}" if url.port else ""
    return f"{method.upper()} {host}{port}{url.path}?{query}"


def cache_ttl(cache_control: str | None, default_ttl: int, max_ttl: int) -> int | None:
    """
    Number of seconds a response with this Cache-Control header may be kept, or None if it must not be stored.
    """
    if cache_control:
        if _NO_STORE.search(cache_control):
            return None
        if m := _MAX_AGE.search(cache_control):
            ttl = int(m.group(1))
            return min(ttl, max_ttl) if ttl > 0 else None
    return min(default_ttl, max_ttl) or None


class EdgeCache:
    def __init__(self, max_entries: int = 1024, default_ttl: int = 3600, max_ttl: int = 24 * 3600, clock=time.monotonic):
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl
        self.clock = clock
        self._entries: OrderedDict[str, CachedResponse] = OrderedDict()

    async def get(self, key: str) -> CachedResponse | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self.clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    async def put(self, key: str, status_code: int, headers: list[tuple[str, str]], body: bytes) -> bool:
        """Store a response, returns False if the response asked not to be cached or the cache is disabled."""
        if self.max_entries <= 0:
            return False
        cache_control = next((v for k, v in headers if k.lower() == "cache-control"), None)
        ttl = cache_ttl(cache_control, self.default_ttl, self.max_ttl)
        if ttl is None:
            return False
        headers = [(k, v) for k, v in headers if k.lower() not in HOP_HEADERS]
        self._entries[key] = CachedResponse(status_code, headers, body, self.clock() + ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return True

    def __len__(self) -> int:
        return len(self._entries)

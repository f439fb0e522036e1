import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from pobbin.api.services import get_services
from pobbin.cache import EdgeCache, cache_key

CACHE_STATUS_HEADER = "X-Cache-Status"


async def populate_cache(cache: EdgeCache, key: str, status_code: int, headers: list[tuple[str, str]], body: bytes):
    logging.debug(f"--> caching response for {key}")
    if await cache.put(key, status_code, headers, body):
        logging.debug("<-- response cached")
    else:
        logging.debug("<-- response not cacheable")


class CacheAsideMiddleware(BaseHTTPMiddleware):
    """
    Serve GET requests from the edge cache when possible.

    On a miss the request is handled normally; a successful response is returned to the client right away
    and a copy is put in the cache by a background task. Other methods neither read nor change the cache.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "GET":
            return await call_next(request)

        services = get_services(request)
        key = cache_key(request.method, request.url)

        cached = await services.edge_cache.get(key)
        if cached is not None:
            logging.debug(f"cache hit for {key}")
            response = Response(content=cached.body, status_code=cached.status_code, headers=dict(cached.headers))
            response.headers[CACHE_STATUS_HEADER] = "HIT"
            return response

        response = await call_next(request)
        if response.status_code != 200:
            response.headers[CACHE_STATUS_HEADER] = "MISS"
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])  # type: ignore[attr-defined]
        headers = list(response.headers.items())
        services.scheduler.spawn_detached(
            populate_cache(services.edge_cache, key, response.status_code, headers, body),
            name=f"populate cache {key}",
        )
        response = Response(content=body, status_code=response.status_code, headers=dict(headers))
        response.headers[CACHE_STATUS_HEADER] = "MISS"
        return response

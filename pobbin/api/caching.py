from fastapi import Response

ONE_YEAR = 60 * 60 * 24 * 365


def cache_for(response: Response, max_age_seconds: int, immutable: bool = False) -> Response:
    """
    Set a public Cache-Control header on the response. Browsers, CDNs and our own edge cache
    keep the response for max_age_seconds.
    """
    cache_header = f"public, max-age={max_age_seconds}"
    if immutable:
        cache_header += ", immutable"
    response.headers["Cache-Control"] = cache_header
    return response


def immutable(response: Response) -> Response:
    """
    Highly aggressive caching for content that never changes, such as a paste: since the id is derived
    from the content, the content at an id can never change.
    """
    return cache_for(response, ONE_YEAR, immutable=True)

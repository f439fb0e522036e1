"""The collaborators the request handlers work with, built once at startup."""

from dataclasses import dataclass, field
from typing import Protocol

from fastapi import Request, Response

from pobbin.cache import EdgeCache
from pobbin.config import Settings
from pobbin.errors import NotFound
from pobbin.reporting import ErrorReporter, build_reporter
from pobbin.storage import Storage, build_storage
from pobbin.tasks import BackgroundScheduler


class Renderer(Protocol):
    """Renders the HTML pages for all requests the API does not handle itself."""

    async def render(self, request: Request) -> Response: ...


class NotFoundRenderer:
    """The default renderer: this server only serves the API."""

    async def render(self, request: Request) -> Response:
        raise NotFound("page", request.url.path)


@dataclass
class Services:
    storage: Storage
    edge_cache: EdgeCache
    reporter: ErrorReporter
    scheduler: BackgroundScheduler = field(default_factory=BackgroundScheduler)
    renderer: Renderer = field(default_factory=NotFoundRenderer)


def build_services(settings: Settings) -> Services:
    return Services(
        storage=build_storage(settings),
        edge_cache=EdgeCache(
            max_entries=settings.edge_cache_size,
            default_ttl=settings.edge_cache_default_ttl,
            max_ttl=settings.edge_cache_max_ttl,
        ),
        reporter=build_reporter(settings.sentry_dsn),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services

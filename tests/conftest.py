import pytest
from httpx import ASGITransport, AsyncClient

from pobbin import api
from pobbin.api.services import Services
from pobbin.cache import EdgeCache
from pobbin.storage import RetryingStorage
from pobbin.storage.memory import MemoryStorage
from tests.tools import CountingStorage, RecordingReporter


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def backend():
    """The storage backend behind the retry policy, counting calls so tests can check storage was (not) used"""
    return CountingStorage(MemoryStorage())


@pytest.fixture(scope="function")
def reporter():
    return RecordingReporter()


@pytest.fixture(scope="function")
async def services(backend, reporter):
    services = Services(
        storage=RetryingStorage(backend, retries=2, backoff=0),
        edge_cache=EdgeCache(max_entries=100),
        reporter=reporter,
    )
    api.app.state.services = services
    yield services
    await services.scheduler.drain()


@pytest.fixture(scope="function")
async def client(services):
    async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test", follow_redirects=False) as client:
        yield client

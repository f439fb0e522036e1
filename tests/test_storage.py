import pytest

from pobbin.config import Settings, StorageBackend
from pobbin.errors import StorageError
from pobbin.storage import RetryingStorage, TransientStorageError, build_storage
from pobbin.storage.local import LocalStorage
from pobbin.storage.memory import MemoryStorage
from pobbin.storage.s3 import S3Storage
from tests.tools import FlakyStorage


@pytest.mark.anyio
async def test_memory_storage():
    storage = MemoryStorage()
    assert await storage.get("paste/a") is None
    await storage.put("paste/a", b"content")
    assert await storage.get("paste/a") == b"content"
    await storage.put("paste/a", b"content")
    assert storage.objects == {"paste/a": b"content"}


@pytest.mark.anyio
async def test_local_storage(tmp_path):
    storage = LocalStorage(tmp_path)
    assert await storage.get("paste/abc") is None
    await storage.put("paste/abc", b"content")
    assert await storage.get("paste/abc") == b"content"
    assert (tmp_path / "paste" / "abc").read_bytes() == b"content"

    # writing again is harmless and leaves no temporary files behind
    await storage.put("paste/abc", b"content")
    assert [p.name for p in (tmp_path / "paste").iterdir()] == ["abc"]


@pytest.mark.anyio
async def test_local_storage_rejects_escaping_keys(tmp_path):
    storage = LocalStorage(tmp_path / "root")
    for key in ["../abc", "paste/../../abc", "/abc", "paste//abc"]:
        with pytest.raises(ValueError):
            await storage.get(key)


@pytest.mark.anyio
async def test_local_storage_io_errors_are_transient(tmp_path):
    (tmp_path / "paste").write_text("a file where a directory should be")
    storage = LocalStorage(tmp_path)
    with pytest.raises(TransientStorageError):
        await storage.put("paste/abc", b"content")


@pytest.mark.anyio
async def test_retry_recovers():
    backend = FlakyStorage(MemoryStorage(), failures=2)
    storage = RetryingStorage(backend, retries=2, backoff=0)
    await storage.put("paste/a", b"content")
    assert await backend.backend.get("paste/a") == b"content"

    backend.failures = 2
    assert await storage.get("paste/a") == b"content"
    assert backend.gets == ["paste/a"] * 3


@pytest.mark.anyio
async def test_retry_gives_up():
    backend = FlakyStorage(MemoryStorage(), failures=10)
    storage = RetryingStorage(backend, retries=3, backoff=0)
    with pytest.raises(StorageError) as e:
        await storage.get("paste/a")
    assert isinstance(e.value.__cause__, TransientStorageError)
    assert len(backend.gets) == 4
    # the backend error text is not part of the message
    assert "connection reset" not in e.value.message


@pytest.mark.anyio
async def test_retry_does_not_retry_other_errors():
    backend = FlakyStorage(MemoryStorage(), failures=1, exception=PermissionError("access denied"))
    storage = RetryingStorage(backend, retries=3, backoff=0)
    with pytest.raises(PermissionError):
        await storage.get("paste/a")
    assert len(backend.gets) == 1


@pytest.mark.anyio
async def test_retry_does_not_retry_missing_objects():
    backend = FlakyStorage(MemoryStorage(), failures=0)
    storage = RetryingStorage(backend, retries=3, backoff=0)
    assert await storage.get("paste/missing") is None
    assert len(backend.gets) == 1


def test_build_storage(tmp_path):
    storage = build_storage(Settings(storage_backend=StorageBackend.local, storage_path=tmp_path, storage_retries=5))
    assert isinstance(storage.backend, LocalStorage)
    assert storage.retries == 5

    storage = build_storage(Settings(storage_backend=StorageBackend.memory))
    assert isinstance(storage.backend, MemoryStorage)

    storage = build_storage(
        Settings(s3_host="http://localhost:9000", s3_access_key="key", s3_secret_key="secret", s3_bucket="test-pastes")
    )
    assert isinstance(storage.backend, S3Storage)
    assert storage.backend.bucket == "test-pastes"

import pytest
from pydantic import ValidationError

from pobbin.config import Settings, StorageBackend, validate_settings
from tests.tools import pobbin_settings

NO_S3 = dict(s3_host=None, s3_access_key=None, s3_secret_key=None)
S3 = dict(s3_host="http://localhost:9000", s3_access_key="key", s3_secret_key="secret")


def test_storage_backend_default():
    assert Settings(**NO_S3).storage_backend == StorageBackend.local
    assert Settings(**S3).storage_backend == StorageBackend.s3
    # an explicit choice is never overridden
    assert Settings(storage_backend="local", **S3).storage_backend == StorageBackend.local
    assert Settings(storage_backend="memory", **NO_S3).storage_backend == StorageBackend.memory


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("POBBIN_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("POBBIN_MAX_UPLOAD_SIZE", "1000")
    settings = Settings()
    assert settings.storage_backend == StorageBackend.memory
    assert settings.max_upload_size == 1000


def test_invalid_settings():
    with pytest.raises(ValidationError):
        Settings(id_length=3)
    with pytest.raises(ValidationError):
        Settings(max_upload_size=0)
    with pytest.raises(ValidationError):
        Settings(storage_backend="dropbox")


def test_storage_backend_options():
    assert StorageBackend.validate("s3") is None
    assert "dropbox is not a valid storage backend" in StorageBackend.validate("dropbox")
    assert StorageBackend.local.__doc__ and "local disk" in StorageBackend.local.__doc__


def test_validate_settings():
    with pobbin_settings(storage_backend=StorageBackend.local):
        assert validate_settings() is None
    with pobbin_settings(storage_backend=StorageBackend.memory):
        assert "memory" in validate_settings()
    with pobbin_settings(storage_backend=StorageBackend.s3, **NO_S3):
        assert "s3" in validate_settings()
    with pobbin_settings(storage_backend=StorageBackend.s3, **S3):
        assert validate_settings() is None

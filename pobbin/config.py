"""
pobbin Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the POBBIN_ENV_FILE environment variable
"""

import functools
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from class_doc import extract_docs_from_cls_obj
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "pobbin_"


class StorageBackend(str, Enum):
    #: S3-compatible object storage (AWS S3, MinIO, SeaweedFS, Cloudflare R2)
    s3 = "s3"

    #: files in a directory on the local disk (see storage_path)
    local = "local"

    #: in-process memory, lost on restart (development only)
    memory = "memory"

    @classmethod
    def validate(cls, value: str):
        if value not in cls.__members__:
            options = ", ".join(StorageBackend.__members__.keys())
            return f"{value} is not a valid storage backend. Choose one of {{{options}}}"


# Set the __doc__ attribute of each StorageBackend enum member using extract_docs_from_cls_obj
for field, doc in extract_docs_from_cls_obj(StorageBackend).items():
    StorageBackend[field].__doc__ = "\n".join(doc)


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")
    host: Annotated[
        str,
        Field(
            description="Host this instance is served at",
        ),
    ] = "http://localhost:5000"

    max_upload_size: Annotated[
        int,
        Field(description="Maximum size of an uploaded paste in bytes", gt=0),
    ] = 512 * 1024

    max_decompressed_size: Annotated[
        int,
        Field(description="Maximum size of a paste after decompression in bytes", gt=0),
    ] = 16 * 1024 * 1024

    id_length: Annotated[
        int,
        Field(description="Number of characters in a paste id", ge=4, le=27),
    ] = 9

    storage_backend: Annotated[
        StorageBackend | None,
        Field(description="Where are pastes stored? Default: s3 if s3 credentials are set, local otherwise"),
    ] = None

    storage_path: Annotated[
        Path,
        Field(description="Root directory for the local storage backend"),
    ] = Path("pastes")

    s3_host: Annotated[str | None, Field(description="S3-compatible object storage host")] = None
    s3_access_key: Annotated[str | None, Field(description="S3 access key")] = None
    s3_secret_key: Annotated[str | None, Field(description="S3 secret key")] = None
    s3_bucket: Annotated[str, Field(description="S3 bucket to store pastes in")] = "pastes"

    storage_retries: Annotated[
        int,
        Field(description="How often a failed storage call is retried before giving up", ge=0),
    ] = 3
    storage_retry_backoff: Annotated[
        float,
        Field(description="Initial delay in seconds between storage retries (doubles on every retry)", ge=0),
    ] = 0.1

    edge_cache_size: Annotated[
        int,
        Field(description="Maximum number of responses kept in the edge cache (0 disables the cache)", ge=0),
    ] = 1024
    edge_cache_default_ttl: Annotated[
        int,
        Field(description="Seconds to cache a response that does not specify a max-age", ge=0),
    ] = 3600
    edge_cache_max_ttl: Annotated[
        int,
        Field(description="Upper bound in seconds for how long the edge cache keeps a response", ge=0),
    ] = 24 * 3600

    sentry_dsn: Annotated[
        str | None,
        Field(description="Sentry DSN to report server errors and invalid pastes to"),
    ] = None

    log_level: Annotated[str, Field(description="Log level (DEBUG, INFO, WARNING, ERROR)")] = "INFO"

    provider_name: Annotated[
        str,
        Field(description="Provider name announced in the oEmbed discovery document"),
    ] = "Paste of Exile - POB B.in"

    @model_validator(mode="after")
    def set_storage_backend(self: Any) -> "Settings":
        if self.storage_backend is None:
            self.storage_backend = StorageBackend.s3 if s3_configured(self) else StorageBackend.local
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


def s3_configured(settings: Settings) -> bool:
    return all([settings.s3_host, settings.s3_access_key, settings.s3_secret_key])


@functools.lru_cache()
def get_settings() -> Settings:
    # load_dotenv is needed for the env_file setting itself to be honoured
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings():
    settings = get_settings()
    if settings.storage_backend == StorageBackend.s3 and not s3_configured(settings):
        return (
            "You have selected the s3 storage backend, but s3_host, s3_access_key or s3_secret_key is missing."
            " The server will not be able to store pastes."
        )
    if settings.storage_backend == StorageBackend.memory:
        return "You are using the memory storage backend. All pastes are lost when the server stops."


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")

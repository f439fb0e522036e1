"""
Store pastes in S3-compatible object storage (e.g., AWS S3, MinIO, SeaweedFS, Cloudflare R2).
"""

import async_lru
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    HTTPClientError,
    ReadTimeoutError,
)

from pobbin.connections import s3
from pobbin.storage.base import TransientStorageError

TRANSIENT_ERROR_CODES = {"SlowDown", "InternalError", "ServiceUnavailable", "RequestTimeout", "Throttling"}
NOT_FOUND_ERROR_CODES = {"404", "NoSuchKey"}

CONNECTION_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
    HTTPClientError,
)


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


def is_transient(e: ClientError) -> bool:
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return status >= 500 or _error_code(e) in TRANSIENT_ERROR_CODES


@async_lru.alru_cache(maxsize=100)
async def _create_or_get_bucket_name(bucket: str) -> str:
    try:
        await s3().head_bucket(Bucket=bucket)
    except ClientError as e:
        if _error_code(e) in ("404", "NoSuchBucket"):
            await s3().create_bucket(Bucket=bucket)
        else:
            raise
    return bucket


class S3Storage:
    def __init__(self, bucket: str):
        self.bucket = bucket

    async def get(self, key: str) -> bytes | None:
        try:
            bucket = await _create_or_get_bucket_name(self.bucket)
            res = await s3().get_object(Bucket=bucket, Key=key)
            async with res["Body"] as stream:
                return await stream.read()
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_ERROR_CODES:
                return None
            if is_transient(e):
                raise TransientStorageError(f"S3 get {key} failed: {_error_code(e)}") from e
            raise
        except CONNECTION_ERRORS as e:
            raise TransientStorageError(f"S3 get {key} failed: {e}") from e

    async def put(self, key: str, data: bytes, sha1: bytes | None = None) -> None:
        metadata = {"sha1": sha1.hex()} if sha1 else {}
        try:
            bucket = await _create_or_get_bucket_name(self.bucket)
            await s3().put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType="text/plain",
                Metadata=metadata,
            )
        except ClientError as e:
            if is_transient(e):
                raise TransientStorageError(f"S3 put {key} failed: {_error_code(e)}") from e
            raise
        except CONNECTION_ERRORS as e:
            raise TransientStorageError(f"S3 put {key} failed: {e}") from e

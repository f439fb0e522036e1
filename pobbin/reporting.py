"""
Reporting of failures to an external error tracker.

Server errors are reported with the request and the pipeline stage that failed. Invalid pastes are
reported in their own category, since they point either at hostile input or at a gap in the validator.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit

import httpx

from pobbin.errors import InvalidPaste, PasteError

INVALID_PASTE_CATEGORY = "invalid_paste"
MAX_REPORTED_CONTENT = 16 * 1024


@dataclass(frozen=True)
class RequestContext:
    method: str
    path: str
    url: str
    user_agent: str | None = None
    stage: str | None = None


class ErrorReporter(Protocol):
    async def capture(self, error: PasteError, context: RequestContext) -> None: ...

    async def close(self) -> None: ...


def category(error: PasteError) -> str:
    return INVALID_PASTE_CATEGORY if isinstance(error, InvalidPaste) else "server_error"


class LoggingReporter:
    """Used when no error tracker is configured: the report only ends up in the log."""

    async def capture(self, error: PasteError, context: RequestContext) -> None:
        cause = error.__cause__
        logging.error(
            f"[{category(error)}] {context.method} {context.path} failed at stage {context.stage or '?'}: "
            f"{error.message}{f' ({cause!r})' if cause else ''}"
        )

    async def close(self) -> None:
        pass


class SentryDsn:
    def __init__(self, dsn: str):
        parts = urlsplit(dsn)
        project = parts.path.strip("/")
        if not (parts.scheme and parts.hostname and parts.username and project):
            raise ValueError(f"Invalid Sentry DSN: {dsn}")
        self.public_key = parts.username
        port = f":{parts.port}" if parts.port else ""
        self.store_url = f"{parts.scheme}://{parts.hostname}{port}/api/{project}/store/"

    def auth_header(self) -> str:
        return f"Sentry sentry_version=7, sentry_client=pobbin/1.0, sentry_key={self.public_key}"


class SentryReporter:
    """Sends events to the Sentry store endpoint. If Sentry cannot be reached, the event is logged and dropped."""

    def __init__(self, dsn: str, client: httpx.AsyncClient | None = None):
        self.dsn = SentryDsn(dsn)
        self.client = client or httpx.AsyncClient(timeout=10)

    def event(self, error: PasteError, context: RequestContext) -> dict[str, Any]:
        cause = error.__cause__
        exc_type = type(cause).__name__ if cause else type(error).__name__
        event: dict[str, Any] = {
            "event_id": uuid.uuid4().hex,
            "timestamp": time.time(),
            "platform": "python",
            "logger": f"pobbin.{category(error)}",
            "level": "warning" if isinstance(error, InvalidPaste) else "error",
            "exception": {"values": [{"type": exc_type, "value": str(cause or error.message)}]},
            "request": {
                "method": context.method,
                "url": context.url,
                "headers": {"User-Agent": context.user_agent} if context.user_agent else {},
            },
            "tags": {"category": category(error), "kind": error.kind.value, "stage": context.stage or "unknown"},
        }
        if isinstance(error, InvalidPaste):
            event["fingerprint"] = [INVALID_PASTE_CATEGORY, error.message]
            event["extra"] = {"content": error.content[:MAX_REPORTED_CONTENT]}
        return event

    async def capture(self, error: PasteError, context: RequestContext) -> None:
        try:
            r = await self.client.post(
                self.dsn.store_url,
                json=self.event(error, context),
                headers={"X-Sentry-Auth": self.dsn.auth_header()},
            )
            r.raise_for_status()
        except httpx.HTTPError as e:
            logging.warning(f"Could not report {error!r} to Sentry: {e}")

    async def close(self) -> None:
        await self.client.aclose()


def build_reporter(sentry_dsn: str | None) -> ErrorReporter:
    if sentry_dsn:
        return SentryReporter(sentry_dsn)
    return LoggingReporter()

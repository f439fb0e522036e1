"""
Conversion of errors to responses.

All errors are sent to the client as {"code": <status>, "message": <short message>}. Server errors and
invalid pastes are also reported to the error tracker, without making the client wait for it.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pobbin.api.services import get_services
from pobbin.errors import InternalError, InvalidPaste, PasteError
from pobbin.reporting import RequestContext


class ErrorResponse(BaseModel):
    code: int
    message: str


def error_response(code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=code, content=ErrorResponse(code=code, message=message).model_dump(), headers=headers)


def to_paste_error(exc: Exception) -> PasteError:
    if isinstance(exc, PasteError):
        return exc
    error = InternalError("Internal server error")
    error.__cause__ = exc
    return error


def should_report(error: PasteError) -> bool:
    return error.server_error or isinstance(error, InvalidPaste)


def request_context(request: Request, error: PasteError) -> RequestContext:
    return RequestContext(
        method=request.method,
        path=request.url.path,
        url=str(request.url),
        user_agent=request.headers.get("user-agent"),
        stage=error.stage,
    )


def handle_error(request: Request, exc: Exception) -> JSONResponse:
    error = to_paste_error(exc)
    if error is not exc:
        logging.error(f"Unexpected error handling {request.method} {request.url.path}", exc_info=exc)
    logging.warning(f"{request.method} {request.url.path} {error.status_code} {error.message}")

    if should_report(error):
        services = get_services(request)
        services.scheduler.spawn_detached(
            services.reporter.capture(error, request_context(request, error)),
            name=f"report {error.kind.value}",
        )
    return error_response(error.status_code, error.message)


class ErrorMapperMiddleware:
    """Turns any exception escaping the application into an error response."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = handle_error(Request(scope), exc)
            await response(scope, receive, send)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logging.warning(f"{request.method} {request.url.path} {exc.status_code} {exc.detail}")
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logging.warning(f"{request.method} {request.url.path} 422 {exc.errors()}")
    return error_response(422, "There was an issue with the data you sent.")

"""POB B.in API: share Path of Building exports."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from pobbin.api.errors import ErrorMapperMiddleware, http_exception_handler, validation_exception_handler
from pobbin.api.info import app_fallback, app_info
from pobbin.api.middleware import CacheAsideMiddleware
from pobbin.api.pastes import app_pastes
from pobbin.api.services import build_services
from pobbin.config import get_settings, validate_settings
from pobbin.connections import pobbin_connections
from pobbin.logs import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    if warning := validate_settings():
        logging.warning(warning)

    async with pobbin_connections():
        logging.info(f"Storing pastes in {settings.storage_backend.value} storage")
        app.state.services = services = build_services(settings)
        yield
        ## cleanup: let pending cache writes and error reports finish
        await services.scheduler.drain()
        await services.reporter.close()


app = FastAPI(
    title="POB B.in",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="pastes", description="Endpoints to upload and download pastes"),
        dict(name="informational", description="Endpoints for discovery"),
    ],
    lifespan=lifespan,
)
app.include_router(app_pastes)
app.include_router(app_info)
app.include_router(app_fallback)

# middleware added last runs first: CORS, then error mapping, then the cache
app.add_middleware(CacheAsideMiddleware)
app.add_middleware(ErrorMapperMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

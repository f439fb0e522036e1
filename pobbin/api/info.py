"""API Endpoints for discovery, and the fallback for everything else."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pobbin.api.caching import cache_for
from pobbin.api.services import Services, get_services
from pobbin.config import Settings, get_settings

app_info = APIRouter(tags=["informational"])

OEMBED_MAX_AGE = 12 * 3600
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class Oembed(BaseModel):
    provider_name: str = Field(..., description="Name of this service")
    provider_url: str = Field(..., description="Address of this service")


@app_info.get("/oembed.json")
async def oembed(request: Request, settings: Settings = Depends(get_settings)):
    """oEmbed discovery document, so chat clients can show a nice preview of shared links."""
    body = Oembed(provider_name=settings.provider_name, provider_url=f"https://{request.url.hostname}")
    return cache_for(JSONResponse(body.model_dump()), OEMBED_MAX_AGE)


# This router must be included last: it catches everything the other routers did not handle
app_fallback = APIRouter(include_in_schema=False)


@app_fallback.api_route("/{path:path}", methods=ALL_METHODS)
async def fallback(request: Request, services: Services = Depends(get_services)):
    """Everything else is a page, which is up to the renderer."""
    return await services.renderer.render(request)

"""API Endpoints for uploading and downloading pastes."""

from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field
from starlette.requests import ClientDisconnect

from pobbin.api.caching import immutable
from pobbin.api.services import Services, get_services
from pobbin.config import Settings, get_settings
from pobbin.errors import BadRequest
from pobbin.pastes import download_paste, read_body, upload_paste

app_pastes = APIRouter(tags=["pastes"])


class PasteCreated(BaseModel):
    id: str = Field(..., description="The id of the paste, identical uploads get identical ids")


def _content_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    return int(value) if value and value.isdigit() else None


async def _stream(request: Request) -> AsyncIterator[bytes]:
    try:
        async for chunk in request.stream():
            yield chunk
    except ClientDisconnect:
        raise BadRequest("Upload interrupted")


async def _upload(request: Request, services: Services, settings: Settings) -> str:
    data = await read_body(_stream(request), settings.max_upload_size, _content_length(request))
    return await upload_paste(
        services.storage,
        data,
        max_size=settings.max_upload_size,
        max_decompressed_size=settings.max_decompressed_size,
        id_length=settings.id_length,
    )


@app_pastes.post("/api/v1/paste/")
async def create_paste(
    request: Request, services: Services = Depends(get_services), settings: Settings = Depends(get_settings)
) -> PasteCreated:
    """
    Upload a Path of Building export code (as the raw request body).
    The paste is validated before it is stored; the response contains its id.
    """
    return PasteCreated(id=await _upload(request, services, settings))


@app_pastes.post("/pob/", response_class=PlainTextResponse)
async def create_paste_pob(
    request: Request, services: Services = Depends(get_services), settings: Settings = Depends(get_settings)
):
    """Upload endpoint used by Path of Building itself: same as /api/v1/paste/, but returns the bare id."""
    return PlainTextResponse(await _upload(request, services, settings))


async def _download(services: Services, paste_id: str) -> Response:
    data = await download_paste(services.storage, paste_id)
    return immutable(Response(content=data, media_type="text/plain"))


@app_pastes.get("/pob/{paste_id}", response_class=PlainTextResponse)
async def get_paste_pob(paste_id: str, services: Services = Depends(get_services)):
    """Download endpoint used by Path of Building: the paste exactly as it was uploaded."""
    return await _download(services, paste_id)


@app_pastes.get("/{paste_id}/raw", response_class=PlainTextResponse)
async def get_paste_raw(paste_id: str, services: Services = Depends(get_services)):
    """The paste exactly as it was uploaded."""
    return await _download(services, paste_id)

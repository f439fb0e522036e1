import asyncio

import pytest
from httpx import AsyncClient

from pobbin.codec import compress
from pobbin.ids import to_path
from tests.tools import ID_RE, check, check_error, pobbin_settings, sample_code


async def _upload(client: AsyncClient, data: bytes) -> str:
    r = await client.post("/api/v1/paste/", content=data)
    check(r, 200)
    return r.json()["id"]


@pytest.mark.anyio
async def test_upload(client, backend):
    r = await client.post("/api/v1/paste/", content=sample_code())
    check(r, 200)
    assert set(r.json().keys()) == {"id"}
    paste_id = r.json()["id"]
    assert ID_RE.match(paste_id)
    assert backend.puts == [to_path(paste_id)]


@pytest.mark.anyio
async def test_upload_pob(client):
    """The upload endpoint used by Path of Building returns the bare id"""
    r = await client.post("/pob/", content=sample_code())
    check(r, 200)
    assert ID_RE.match(r.text)
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == await _upload(client, sample_code())


@pytest.mark.anyio
async def test_download(client):
    data = sample_code()
    paste_id = await _upload(client, data)
    for url in [f"/{paste_id}/raw", f"/pob/{paste_id}"]:
        r = await client.get(url)
        check(r, 200)
        assert r.content == data
        assert r.headers["content-type"].startswith("text/plain")
        assert r.headers["cache-control"] == "public, max-age=31536000, immutable"


@pytest.mark.anyio
async def test_download_unknown(client):
    check_error(await client.get("/unknown-id/raw"), 404, "unknown-id")
    check_error(await client.get("/pob/unknown-id"), 404, "unknown-id")


@pytest.mark.anyio
async def test_concurrent_identical_uploads(client, backend):
    data = sample_code()
    r1, r2 = await asyncio.gather(
        client.post("/api/v1/paste/", content=data),
        client.post("/api/v1/paste/", content=data),
    )
    check(r1, 200)
    check(r2, 200)
    assert r1.json()["id"] == r2.json()["id"]
    assert backend.backend.objects == {to_path(r1.json()["id"]): data}


@pytest.mark.anyio
async def test_upload_too_large(client, backend):
    with pobbin_settings(max_upload_size=100):
        check_error(await client.post("/api/v1/paste/", content=sample_code()), 400, "too large")
        check_error(await client.post("/pob/", content=sample_code()), 400, "too large")
    assert backend.puts == []


@pytest.mark.anyio
async def test_upload_too_large_streaming(client, backend):
    """Without a Content-Length, the body is counted while it is read"""

    async def body():
        for _ in range(10):
            yield b"A" * 50

    with pobbin_settings(max_upload_size=100):
        check_error(await client.post("/api/v1/paste/", content=body()), 400, "too large")
    assert backend.puts == []


@pytest.mark.anyio
async def test_upload_undecodable(client, backend):
    check_error(await client.post("/api/v1/paste/", content=b""), 400)
    check_error(await client.post("/api/v1/paste/", content=b"\xff\xfe"), 400, "invalid content")
    check_error(await client.post("/api/v1/paste/", content=b"this is not a build"), 400)
    assert backend.puts == []


@pytest.mark.anyio
async def test_upload_invalid_paste(client, backend):
    code = compress("<PathOfBuilding><Notes>no build here</Notes></PathOfBuilding>").encode()
    check_error(await client.post("/api/v1/paste/", content=code), 400, "invalid build")
    code = compress("<Build/>").encode()
    check_error(await client.post("/pob/", content=code), 400, "invalid build")
    assert backend.puts == []


@pytest.mark.anyio
async def test_oembed(client):
    r = await client.get("/oembed.json")
    check(r, 200)
    assert r.json() == {"provider_name": "Paste of Exile - POB B.in", "provider_url": "https://test"}
    assert r.headers["cache-control"] == "public, max-age=43200"


@pytest.mark.anyio
async def test_cors(client):
    r = await client.post("/api/v1/paste/", content=sample_code(), headers={"Origin": "https://example.com"})
    check(r, 200)
    assert r.headers["access-control-allow-origin"] == "*"

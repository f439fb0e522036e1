"""
The upload and download pipelines.

Both run their stages strictly in order and stop at the first failure. Every error that leaves a
pipeline is a PasteError tagged with the stage it happened in; unexpected exceptions are wrapped
in an InternalError.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import AsyncIterable, Iterator

from pobbin import codec, ids, pob
from pobbin.errors import BadRequest, InternalError, InvalidPaste, NotFound, PasteError
from pobbin.storage import Storage


class Stage(str, Enum):
    RECEIVE_BODY = "receive_body"
    SIZE_CHECK = "size_check"
    DECOMPRESS = "decompress"
    VALIDATE = "validate"
    HASH = "hash"
    ENCODE_ID = "encode_id"
    MAP_PATH = "map_path"
    STORE = "store"
    VALIDATE_ID = "validate_id"
    FETCH = "fetch"


@contextmanager
def stage(name: Stage) -> Iterator[None]:
    try:
        yield
    except PasteError as e:
        e.stage = e.stage or name.value
        raise
    except Exception as e:
        raise InternalError("Internal server error", stage=name.value) from e


def too_large(max_size: int) -> BadRequest:
    return BadRequest(f"Paste too large (maximum is {max_size} bytes)", stage=Stage.SIZE_CHECK.value)


async def read_body(chunks: AsyncIterable[bytes], max_size: int, content_length: int | None = None) -> bytes:
    """Read a request body, giving up as soon as it is larger than max_size."""
    if content_length is not None and content_length > max_size:
        raise too_large(max_size)
    body = bytearray()
    with stage(Stage.RECEIVE_BODY):
        async for chunk in chunks:
            body += chunk
            if len(body) > max_size:
                raise too_large(max_size)
    return bytes(body)


async def upload_paste(
    storage: Storage, data: bytes, max_size: int, max_decompressed_size: int | None = None, id_length: int = 9
) -> str:
    """Validate and store a paste, returning its id."""
    with stage(Stage.SIZE_CHECK):
        if len(data) > max_size:
            raise too_large(max_size)

    with stage(Stage.DECOMPRESS):
        try:
            code = data.decode("utf-8")
        except UnicodeDecodeError:
            raise BadRequest("invalid content")
        try:
            text = codec.decompress(code, max_size=max_decompressed_size)
        except codec.DecodeError as e:
            raise BadRequest(str(e))

    with stage(Stage.VALIDATE):
        try:
            pob.parse(text)
        except pob.ParseError as e:
            raise InvalidPaste(e.message, e.content)

    with stage(Stage.HASH):
        digest = await ids.sha1(data)
    with stage(Stage.ENCODE_ID):
        paste_id = ids.hash_to_short_id(digest, id_length)
    with stage(Stage.MAP_PATH):
        key = ids.to_path(paste_id)

    with stage(Stage.STORE):
        logging.debug(f"--> uploading paste '{paste_id}' to '{key}'")
        await storage.put(key, data, sha1=digest)
        logging.debug("<-- paste uploaded")

    return paste_id


async def download_paste(storage: Storage, paste_id: str) -> bytes:
    """Return the paste exactly as it was uploaded. Raises NotFound for unknown ids."""
    with stage(Stage.VALIDATE_ID):
        key = ids.to_path(paste_id)
    with stage(Stage.FETCH):
        data = await storage.get(key)
        if data is None:
            raise NotFound("paste", paste_id)
    return data

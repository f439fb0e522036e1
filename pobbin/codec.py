"""
Encoding of Path of Building export codes.

An export code is the build XML, deflated with zlib and encoded with URL-safe base64
(Path of Building replaces + and / by - and _, but keeps the = padding).
"""

import base64
import binascii
import zlib

# whitespace in pasted codes (line breaks from chat clients etc.) is ignored
_WHITESPACE = str.maketrans("", "", " \t\r\n")


class DecodeError(ValueError):
    pass


def decompress(code: str, max_size: int | None = None) -> str:
    """
    Decode an export code into the build XML.
    Raises DecodeError if the code is not valid base64, not a complete zlib stream,
    not UTF-8 after inflating, or inflates to more than max_size bytes.
    """
    code = code.translate(_WHITESPACE)
    if not code:
        raise DecodeError("Empty paste")
    code = code.replace("-", "+").replace("_", "/")
    code += "=" * (-len(code) % 4)
    try:
        raw = base64.b64decode(code.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        raise DecodeError("Invalid base64 encoding")

    inflater = zlib.decompressobj()
    try:
        if max_size is None:
            data = inflater.decompress(raw)
        else:
            data = inflater.decompress(raw, max_size + 1)
            if len(data) > max_size:
                raise DecodeError(f"Paste inflates to more than {max_size} bytes")
    except zlib.error as e:
        raise DecodeError(f"Invalid compression: {e}")
    if not inflater.eof:
        raise DecodeError("Invalid compression: truncated stream")
    if inflater.unused_data:
        raise DecodeError("Invalid compression: trailing data")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        raise DecodeError("Paste is not valid UTF-8 after decompression")


def compress(text: str) -> str:
    """Encode build XML into an export code, the inverse of decompress."""
    return base64.urlsafe_b64encode(zlib.compress(text.encode("utf-8"), 9)).decode("ascii")

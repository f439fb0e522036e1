"""
Errors that can leave the paste store.

Every failure in the upload and download pipelines ends up as one of the PasteError subclasses below.
They are converted to the wire format ({"code": ..., "message": ...}) in one place, the error mapper
in pobbin.api.errors.
"""

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    INVALID_PASTE = "invalid_paste"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    INTERNAL = "internal"


class PasteError(Exception):
    kind: ClassVar[ErrorKind]
    status_code: ClassVar[int]

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    @property
    def server_error(self) -> bool:
        return self.status_code >= 500

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, stage={self.stage!r})"


class BadRequest(PasteError):
    """Oversized body, undecodable compression or a malformed id. Always caused by the client."""

    kind = ErrorKind.BAD_REQUEST
    status_code = 400


class InvalidPaste(PasteError):
    """The paste decompressed fine, but is not a valid build export."""

    kind = ErrorKind.INVALID_PASTE
    status_code = 400

    def __init__(self, message: str, content: str, stage: str | None = None):
        super().__init__(message, stage=stage)
        self.content = content


class NotFound(PasteError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, what: str, name: str, stage: str | None = None):
        super().__init__(f"{what} '{name}' not found", stage=stage)
        self.what = what
        self.name = name


class StorageError(PasteError):
    """The storage backend kept failing after all retries."""

    kind = ErrorKind.STORAGE
    status_code = 503


class InternalError(PasteError):
    kind = ErrorKind.INTERNAL
    status_code = 500

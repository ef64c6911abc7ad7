"""
Render Errors
=============

Error kinds for the rendering pipeline. Each exception carries its kind, and
each kind knows the HTTP status it is reported with, so the API boundary
needs no message sniffing to pick a response.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories of a render job."""

    ALREADY_BUSY = "already_busy"
    INVALID_INPUT = "invalid_input"
    RENDER_ENGINE_UNAVAILABLE = "render_engine_unavailable"
    RENDER_FAILED = "render_failed"
    PACKAGING_FAILED = "packaging_failed"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.ALREADY_BUSY: 429,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.RENDER_ENGINE_UNAVAILABLE: 500,
    ErrorKind.RENDER_FAILED: 500,
    ErrorKind.PACKAGING_FAILED: 500,
}


class CardRenderError(Exception):
    """Base exception for render job failures."""

    kind: ErrorKind = ErrorKind.RENDER_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class AlreadyBusy(CardRenderError):
    """Another render job holds the gate."""

    kind = ErrorKind.ALREADY_BUSY

    def __init__(self, message: str = "already running"):
        super().__init__(message)


class InvalidInput(CardRenderError):
    """Request body is missing a required field or is malformed."""

    kind = ErrorKind.INVALID_INPUT


class RenderEngineUnavailable(CardRenderError):
    """Browser could not be launched."""

    kind = ErrorKind.RENDER_ENGINE_UNAVAILABLE


class RenderFailed(CardRenderError):
    """Templating, content load or capture failed."""

    kind = ErrorKind.RENDER_FAILED


class PackagingFailed(CardRenderError):
    """Archive encoder failed."""

    kind = ErrorKind.PACKAGING_FAILED

"""
API errors. Every failure a controller can signal deliberately is an
``ApiError`` subclass carrying the numeric code written into the envelope.
"""

from enum import Enum, IntEnum


class HttpCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    INTERNAL_ERROR = 500


class ContentFormat(str, Enum):
    HTML = "html"
    MARKDOWN = "markdown"


class ApiError(Exception):
    """Base API error with a structured response."""

    code: HttpCode = HttpCode.INTERNAL_ERROR

    def __init__(self, message: str, code: HttpCode | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(ApiError):
    code = HttpCode.BAD_REQUEST


class AuthError(ApiError):
    code = HttpCode.UNAUTHORIZED


class PermissionDeniedError(ApiError):
    code = HttpCode.FORBIDDEN


class NotFoundError(ApiError):
    code = HttpCode.NOT_FOUND


class MethodNotAllowedError(ApiError):
    code = HttpCode.METHOD_NOT_ALLOWED


class UpstreamError(ApiError):
    """An external collaborator (content store, AI provider) failed."""

    code = HttpCode.INTERNAL_ERROR


class InternalError(ApiError):
    code = HttpCode.INTERNAL_ERROR

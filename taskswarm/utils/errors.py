"""Classification of model-invocation failures into retryable and fatal kinds."""

import asyncio
from enum import Enum

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

FATAL_MARKERS = ("process exited", "not started", "not configured")

TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "rate limit",
    "429",
    "500",
    "502",
    "503",
    "504",
    "econnreset",
    "econnrefused",
    "connection reset",
    "closed",
)


class ErrorKind(str, Enum):
    TRANSIENT = "transient"
    FATAL = "fatal"


def _status_code(exc: BaseException):
    code = getattr(exc, "status_code", None)
    if code is None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Decide whether a failed model call is worth retrying.

    Structured signals (exception type, HTTP status) are checked first; message
    text is only consulted when the transport gave nothing better.
    """
    message = str(exc).lower()
    if any(marker in message for marker in FATAL_MARKERS):
        return ErrorKind.FATAL

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT

    status = _status_code(exc)
    if status is not None:
        return ErrorKind.TRANSIENT if status in TRANSIENT_STATUS_CODES else ErrorKind.FATAL

    if any(marker in message for marker in TRANSIENT_MARKERS):
        return ErrorKind.TRANSIENT
    return ErrorKind.FATAL


def is_retryable(exc: BaseException) -> bool:
    return classify_error(exc) is ErrorKind.TRANSIENT

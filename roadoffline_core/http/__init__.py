"""HTTP module - Request and response records."""

from roadoffline_core.http.message import (
    Request,
    RequestMode,
    Response,
    ResponseSource,
    normalize_url,
    offline_response,
)

__all__ = [
    "Request",
    "RequestMode",
    "Response",
    "ResponseSource",
    "normalize_url",
    "offline_response",
]

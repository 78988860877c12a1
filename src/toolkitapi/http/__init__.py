"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The HTTP/1.1 subset spoken by the toolkit API: raw bytes in, structured
requests to the handlers, structured responses back out to bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │   b"POST /ocr HTTP/1.1\r\n..."  →  HTTPRequest(method, path, ...)   │
    ├─────────────────────────────────────────────────────────────────────┤
    │ MULTIPART DECODER (multipart.py)                                    │
    │   multipart body + boundary  →  MultipartForm(image, language)      │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE BUILDER (response.py)                                      │
    │   status + JSON payload  →  b"HTTP/1.1 200 OK\r\n..."               │
    ├─────────────────────────────────────────────────────────────────────┤
    │ ROUTER (router.py)                                                  │
    │   (GET, /health)  →  HealthHandler                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES (status_codes.py)                                      │
    │   HTTPStatus.NOT_FOUND → 404, phrase="Not Found"                    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, parse_header_lines, parse_request
from .multipart import MultipartForm, MultipartPart, decode, extract_boundary, iter_parts
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    format_http_date,
    json_response,
)
from .router import Route, Router
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_header_lines",
    "parse_request",

    # Multipart
    "MultipartForm",
    "MultipartPart",
    "decode",
    "extract_boundary",
    "iter_parts",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "format_http_date",
    "json_response",

    # Routing
    "Route",
    "Router",

    # Status codes
    "HTTPStatus",
]

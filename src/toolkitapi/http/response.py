"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: application/json; charset=utf-8\r\n           │ │
    │  │    Content-Length: 87\r\n              ← always, from body     │ │
    │  │    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n                     │ │
    │  │    Server: mac-toolkit-api/1.0.0\r\n                           │ │
    │  │    Connection: close\r\n               ← one request per conn  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    {"text": "HELLO", "confidence": 0.95, ...}                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

No chunked encoding and no keep-alive: the client learns where the body
ends from Content-Length, and the server closes the socket right after.

=============================================================================
BUILDER PATTERN
=============================================================================

    ResponseBuilder()
        .status(HTTPStatus.OK)
        .json({"status": "ok"})
        .no_cache()
        .build()

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Union
import json

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "mac-toolkit-api/1.0.0"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Built once per request by a handler (or by the error path of the
    connection handler) and serialized exactly once with to_bytes().
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return default

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def json(self) -> Any:
        """Decode the body as JSON (used by tests and the access log)."""
        return json.loads(self.body.decode("utf-8"))

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n
            Content-Type: application/json; charset=utf-8\r\n
            Content-Length: 27\r\n         ← computed from body, always
            Date: Mon, 19 Oct 2026 ...\r\n ← added if missing
            Server: mac-toolkit-api/1.0.0\r\n
            Connection: close\r\n          ← always
            \r\n
            {"status": "ok", ...}

        =====================================================================

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response ready for socket.sendall().
        """
        # Drop any caller-supplied framing headers; they are ours to write
        response_headers = {
            name: value
            for name, value in self.headers.items()
            if name.lower() not in ("content-length", "connection")
        }

        response_headers["Content-Length"] = str(len(self.body))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)
        response_headers["Connection"] = "close"

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in response_headers.items())
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, so calls chain:

        builder.status(200).header("X-Key", "val").json(data).build()
        ────────┬───────────────────┬─────────────────┬────────────┬───
                └───────────────────┴─────────────────┴────────────┘
                         All return 'self' except build()
    """

    def __init__(self, server_name: str = DEFAULT_SERVER_NAME):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._server_name = server_name

    # =========================================================================
    # STATUS / HEADERS
    # =========================================================================

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        self._status = HTTPStatus.from_code(int(status))
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def no_cache(self) -> "ResponseBuilder":
        """Sets Cache-Control: no-store."""
        return self.header("Cache-Control", "no-store")

    def close_connection(self) -> "ResponseBuilder":
        # to_bytes() writes this regardless
        return self.header("Connection", "close")

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Serialize data as the JSON body and set Content-Type.

        ensure_ascii=False keeps recognized CJK text readable on the wire
        (it is still valid UTF-8 JSON).
        """
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        return self.build().to_bytes(self._server_name)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Mon, 19 Oct 2026 12:00:00 GMT

    HTTP dates are always in GMT, never local time. Names are spelled out
    here rather than with strftime so the output ignores the process locale.
    """
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def json_response(payload: Any, status: Union[HTTPStatus, int] = HTTPStatus.OK) -> HTTPResponse:
    """Create a JSON response that must not be cached."""
    return ResponseBuilder().status(status).json(payload).no_cache().build()


def error_response(status: Union[HTTPStatus, int], message: str) -> HTTPResponse:
    """
    Create a response carrying the API's single error contract.

        >>> error_response(404, "Not Found").json()
        {'error': 'Not Found', 'status': 404}
    """
    code = int(status)
    return json_response({"error": message, "status": code}, status=code)

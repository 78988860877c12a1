"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw request bytes into structured HTTPRequest objects.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │    POST /ocr HTTP/1.1\r\n                                      │ │
    │  │    ─┬── ──┬─ ───┬────                                          │ │
    │  │   Method Path  Version                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: 127.0.0.1:54321\r\n                                   │ │
    │  │    Content-Type: multipart/form-data; boundary=XyZ\r\n         │ │
    │  │    Content-Length: 48213\r\n                                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE (separator) ───────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (raw bytes, may be binary image data) ───────────────────┐ │
    │  │    --XyZ\r\n Content-Disposition: ... \x89PNG...               │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. SEPARATOR: the first \r\n\r\n splits headers from body. No separator
   means the request is malformed. The parser never asks for more bytes;
   reading enough of them is the connection's job.

2. REQUEST LINE: at least three space-separated tokens
   (method, target, version). Fewer is malformed.

3. HEADERS: split on the FIRST colon, trimmed, names lower-cased.
   A line without a colon is skipped. A repeated name keeps the last value.

4. BODY: everything after the separator, untouched. Content-Length is
   informational here.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..errors import MalformedRequest


HEADER_SEPARATOR = b"\r\n\r\n"


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Immutable once built by the parser; handlers only read from it.

    Attributes:
        method:         Request method as sent ("GET", "POST", ...)
        path:           Request target without the query string
        version:        Protocol token from the request line
        headers:        Lower-cased header name → value
        body:           Raw body bytes (binary-safe)
        query:          Raw query string ("" if none)
        client_address: (ip, port) of the peer, for logging
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    query: str = ""
    client_address: tuple[str, int] = ("", 0)

    @property
    def content_type(self) -> Optional[str]:
        """
        Media type of the body without parameters, lower-cased.

        "multipart/form-data; boundary=abc" → "multipart/form-data"
        """
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        """Content-Length header as an integer (0 if missing or invalid)."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


def parse_header_lines(lines: Iterable[str]) -> Dict[str, str]:
    """
    Parse "Name: Value" lines into a dictionary.

    Shared by the request parser and the multipart decoder so part headers
    follow exactly the same rules as top-level headers.

    Args:
        lines: Header lines, without the request line.

    Returns:
        Dictionary of lower-cased name → trimmed value.
    """
    headers: Dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            continue  # No colon: not a header, skip it
        headers[name.strip().lower()] = value.strip()
    return headers


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

        Raw Request Bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Find Header/Body Separator (\\r\\n\\r\\n)                       │
        │     │  Not found? → MalformedRequest                              │
        │     ▼                                                             │
        │  2. Parse Request Line                                            │
        │     │  < 3 tokens? → MalformedRequest                             │
        │     ▼                                                             │
        │  3. Parse Headers (lower-cased, last write wins)                  │
        │     ▼                                                             │
        │  4. Body = bytes after separator                                  │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest
    """

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw request bytes as read from the socket.
            client_address: Peer (ip, port) for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            MalformedRequest: If the separator is missing or the request
                line has fewer than three tokens.
        """
        header_end = data.find(HEADER_SEPARATOR)
        if header_end == -1:
            raise MalformedRequest("Bad Request: no header terminator")

        # Header text is ASCII in practice; never fail on stray bytes
        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + len(HEADER_SEPARATOR):]

        lines = header_section.split("\r\n")
        method, target, version = self._parse_request_line(lines[0])
        path, _, query = target.partition("?")

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=parse_header_lines(lines[1:]),
            body=body,
            query=query,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Split "METHOD TARGET VERSION" into its parts.

        Extra tokens after the version are ignored.
        """
        tokens = [token for token in line.split(" ") if token]
        if len(tokens) < 3:
            raise MalformedRequest("Bad Request: invalid request line")
        return tokens[0], tokens[1], tokens[2]


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """Parse a request with a throwaway RequestParser."""
    return RequestParser().parse(data, client_address)

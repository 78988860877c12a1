"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this API answers with, and their reason phrases.

    ┌────────┬──────────────────────────────┬──────────────────────────────┐
    │  Code  │ Phrase                       │ When                         │
    ├────────┼──────────────────────────────┼──────────────────────────────┤
    │  200   │ OK                           │ /health, successful /ocr     │
    │  400   │ Bad Request                  │ malformed request or body    │
    │  404   │ Not Found                    │ any unknown (method, path)   │
    │  415   │ Unsupported Media Type       │ /ocr with other content type │
    │  500   │ Internal Server Error        │ recognizer or handler failed │
    └────────┴──────────────────────────────┴──────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.UNSUPPORTED_MEDIA_TYPE.phrase
        'Unsupported Media Type'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    PAYLOAD_TOO_LARGE = 413
    UNSUPPORTED_MEDIA_TYPE = 415
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 415 Unsupported Media Type
                     ─── ──────────────────────
                      │           └── phrase
                      └────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400

    @classmethod
    def from_code(cls, code: int) -> "HTTPStatus":
        """
        Map an integer code onto a member.

        Unknown codes fall back to the generic member of their class
        (4xx → 400, everything else → 500).
        """
        try:
            return cls(code)
        except ValueError:
            return cls.BAD_REQUEST if 400 <= code < 500 else cls.INTERNAL_SERVER_ERROR


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}

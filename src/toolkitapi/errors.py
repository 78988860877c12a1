"""
=============================================================================
API ERRORS
=============================================================================

Every failure the API can report is an APIError subclass carrying the HTTP
status code it maps to. Parsers, decoders and handlers raise them; the
connection handler catches them in one place and turns them into the
single error body used by the whole API:

    {"error": "<message>", "status": <code>}

    ┌────────────────────────┬────────┬──────────────────────────────────┐
    │ Error                  │ Status │ Raised by                        │
    ├────────────────────────┼────────┼──────────────────────────────────┤
    │ MalformedRequest       │  400   │ request parser                   │
    │ MissingBoundary        │  400   │ OCR handler (multipart)          │
    │ MissingImagePart       │  400   │ multipart decoder                │
    │ InvalidJSON            │  400   │ OCR handler (JSON body)          │
    │ MissingImageField      │  400   │ OCR handler (JSON body)          │
    │ InvalidImageEncoding   │  400   │ OCR handler (JSON body)          │
    │ UnsupportedMediaType   │  415   │ OCR handler                      │
    │ RouteNotFound          │  404   │ router                           │
    │ CollaboratorFailure    │  500   │ OCR handler (recognizer failed)  │
    └────────────────────────┴────────┴──────────────────────────────────┘

=============================================================================
"""

from typing import Any, Dict


class APIError(Exception):
    """
    Base class for errors that become JSON error responses.

    Subclasses set a default status code and message; both can be
    overridden per instance.
    """

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str = "", status_code: int = 0):
        self.message = message or self.default_message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the error contract."""
        return {"error": self.message, "status": self.status_code}


class MalformedRequest(APIError):
    status_code = 400
    default_message = "Bad Request"


class MissingBoundary(APIError):
    status_code = 400
    default_message = "Bad Request: Missing multipart boundary"


class MissingImagePart(APIError):
    status_code = 400
    default_message = "Bad Request: Missing image data"


class InvalidJSON(APIError):
    status_code = 400
    default_message = "Bad Request: Invalid JSON body"


class MissingImageField(APIError):
    status_code = 400
    default_message = "Bad Request: Missing 'image' field"


class InvalidImageEncoding(APIError):
    status_code = 400
    default_message = "Bad Request: 'image' is not valid base64"


class UnsupportedMediaType(APIError):
    status_code = 415
    default_message = "Unsupported Media Type"


class RouteNotFound(APIError):
    status_code = 404
    default_message = "Not Found"


class CollaboratorFailure(APIError):
    """A collaborator (e.g. the text recognizer) reported an error."""

    status_code = 500

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Internal Server Error: {description}")

"""
=============================================================================
OCR HANDLER
=============================================================================

POST /ocr: recognize the text in an uploaded image.

=============================================================================
ACCEPTED BODIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ 1. MULTIPART UPLOAD                                                 │
    │                                                                      │
    │    curl -F image=@shot.png http://127.0.0.1:54321/ocr               │
    │    curl -F image=@shot.png -F language=en-US 127.0.0.1:54321/ocr    │
    │                                                                      │
    │    Content-Type: multipart/form-data; boundary=...                  │
    │    file part (filename=... or name="image") + optional "language"   │
    ├─────────────────────────────────────────────────────────────────────┤
    │ 2. JSON                                                             │
    │                                                                      │
    │    Content-Type: application/json                                   │
    │    {"image": "<base64>", "language": "en-US"}                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │ 3. ANYTHING ELSE → 415 Unsupported Media Type                       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
RESPONSE
=============================================================================

    200 OK
    {"text": "HELLO", "confidence": 0.95, "language": "en-US", "blocks": []}

The recognizer does not score its output or report geometry yet, so
confidence is the configured constant and blocks is always empty.

    ┌──────────────────────────────────────┬────────┬─────────────────────┐
    │ Failure                              │ Status │ Error               │
    ├──────────────────────────────────────┼────────┼─────────────────────┤
    │ multipart without boundary=          │  400   │ MissingBoundary     │
    │ multipart without a file part        │  400   │ MissingImagePart    │
    │ JSON that is not an object           │  400   │ InvalidJSON         │
    │ JSON without a string "image"        │  400   │ MissingImageField   │
    │ "image" is not base64                │  400   │ InvalidImageEncoding│
    │ other Content-Type                   │  415   │ UnsupportedMediaType│
    │ recognizer raised                    │  500   │ CollaboratorFailure │
    └──────────────────────────────────────┴────────┴─────────────────────┘

=============================================================================
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple
import base64
import binascii
import json
import logging

from ..errors import (
    CollaboratorFailure,
    InvalidImageEncoding,
    InvalidJSON,
    MissingBoundary,
    MissingImageField,
    UnsupportedMediaType,
)
from ..http import multipart
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus
from ..services.base import TextRecognizer, resolve


logger = logging.getLogger(__name__)


@dataclass
class OCRResult:
    """Body of a successful /ocr response."""

    text: str
    confidence: float
    language: str
    blocks: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class OCRHandler:
    """
    Handler for POST /ocr.

    Args:
        recognizer: The text-recognition collaborator.
        default_language: Used when the request names no language.
        confidence: Reported with every result.
    """

    def __init__(
        self,
        recognizer: TextRecognizer,
        default_language: str = "zh-Hans",
        confidence: float = 0.95,
    ):
        self.recognizer = recognizer
        self.default_language = default_language
        self.confidence = confidence

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        image, language = self.extract(request)
        text = self.recognize(image, language)

        result = OCRResult(
            text=text,
            confidence=self.confidence,
            language=language,
        )
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json(result.to_dict())
            .no_cache()
            .build())

    __call__ = handle

    # ─────────────────────────────────────────────────────────────────────
    # BODY EXTRACTION
    # ─────────────────────────────────────────────────────────────────────

    def extract(self, request: HTTPRequest) -> Tuple[bytes, str]:
        """
        Pull (image bytes, language) out of the request body.

        Branches on the raw Content-Type header, checking for multipart
        first, then JSON.
        """
        content_type = request.get_header("content-type")
        lowered = content_type.lower()

        if "multipart/form-data" in lowered:
            return self._from_multipart(request.body, content_type)
        if "application/json" in lowered:
            return self._from_json(request.body)

        raise UnsupportedMediaType()

    def _from_multipart(self, body: bytes, content_type: str) -> Tuple[bytes, str]:
        boundary = multipart.extract_boundary(content_type)
        if boundary is None:
            raise MissingBoundary()

        form = multipart.decode(body, boundary)
        return form.image, form.language or self.default_language

    def _from_json(self, body: bytes) -> Tuple[bytes, str]:
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise InvalidJSON()

        if not isinstance(data, dict):
            raise InvalidJSON("Bad Request: JSON body must be an object")

        encoded = data.get("image")
        if not isinstance(encoded, str):
            raise MissingImageField()

        try:
            image = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidImageEncoding()

        language = data.get("language")
        if not isinstance(language, str) or not language.strip():
            language = self.default_language

        return image, language.strip()

    # ─────────────────────────────────────────────────────────────────────
    # RECOGNITION
    # ─────────────────────────────────────────────────────────────────────

    def recognize(self, image: bytes, language: Optional[str]) -> str:
        """
        Call the recognizer and wait for its single answer.

        Raises:
            CollaboratorFailure: Whatever went wrong, with its description.
        """
        try:
            return str(resolve(self.recognizer.recognize(image, language)))
        except Exception as e:
            logger.warning(f"Recognizer failed ({type(e).__name__}): {e}")
            raise CollaboratorFailure(str(e) or type(e).__name__) from e

"""
Unit tests for the /health and /ocr handlers.
"""

import asyncio
import base64
import json
from concurrent.futures import Future

import pytest

from conftest import PNG_BYTES, StubRecognizer, build_multipart
from toolkitapi.errors import (
    CollaboratorFailure,
    InvalidImageEncoding,
    InvalidJSON,
    MissingBoundary,
    MissingImageField,
    MissingImagePart,
    UnsupportedMediaType,
)
from toolkitapi.handlers import HealthHandler, OCRHandler
from toolkitapi.http.request import HTTPRequest
from toolkitapi.services import ServiceError, TextRecognizer, UnavailableRecognizer


BOUNDARY = "XyZ123"


def ocr_request(body: bytes, content_type: str) -> HTTPRequest:
    return HTTPRequest(
        method="POST",
        path="/ocr",
        headers={"content-type": content_type, "content-length": str(len(body))},
        body=body,
    )


def json_request(payload) -> HTTPRequest:
    return ocr_request(json.dumps(payload).encode(), "application/json")


class TestHealthHandler:
    """Tests for HealthHandler."""

    def test_payload(self):
        handler = HealthHandler("mac-toolkit-api", "1.0.0", clock=lambda: 1234.5)

        response = handler(HTTPRequest(method="GET", path="/health"))

        assert response.status == 200
        assert response.json() == {
            "status": "ok",
            "timestamp": 1234.5,
            "service": "mac-toolkit-api",
            "version": "1.0.0",
        }

    def test_not_cached(self):
        response = HealthHandler().handle(HTTPRequest(method="GET", path="/health"))

        assert response.get_header("Cache-Control") == "no-store"

    def test_timestamp_is_epoch_float(self):
        body = HealthHandler().handle(HTTPRequest(method="GET", path="/health")).json()

        assert isinstance(body["timestamp"], float)
        assert body["timestamp"] > 1_600_000_000


class TestOCRHandlerJSON:
    """Tests for JSON bodies on POST /ocr."""

    def test_success(self, recognizer: StubRecognizer):
        """Test the basic JSON upload."""
        handler = OCRHandler(recognizer)
        request = json_request({
            "image": base64.b64encode(PNG_BYTES).decode(),
            "language": "en-US",
        })

        response = handler(request)

        assert response.status == 200
        assert response.json() == {
            "text": "HELLO",
            "confidence": 0.95,
            "language": "en-US",
            "blocks": [],
        }
        assert recognizer.calls == [(PNG_BYTES, "en-US")]

    def test_default_language(self, recognizer: StubRecognizer):
        handler = OCRHandler(recognizer, default_language="zh-Hans")

        response = handler(json_request({"image": base64.b64encode(b"img").decode()}))

        assert response.json()["language"] == "zh-Hans"
        assert recognizer.calls == [(b"img", "zh-Hans")]

    @pytest.mark.parametrize("language", [42, None, "", ["en-US"]])
    def test_bad_language_falls_back(self, recognizer: StubRecognizer, language):
        handler = OCRHandler(recognizer, default_language="zh-Hans")

        response = handler(json_request({"image": "aW1n", "language": language}))

        assert response.json()["language"] == "zh-Hans"

    def test_custom_confidence(self, recognizer: StubRecognizer):
        handler = OCRHandler(recognizer, confidence=0.5)

        assert handler(json_request({"image": "aW1n"})).json()["confidence"] == 0.5

    def test_content_type_with_charset(self, recognizer: StubRecognizer):
        request = ocr_request(b'{"image": "aW1n"}', "application/json; charset=utf-8")

        assert OCRHandler(recognizer)(request).status == 200

    def test_invalid_base64(self, recognizer: StubRecognizer):
        with pytest.raises(InvalidImageEncoding) as exc_info:
            OCRHandler(recognizer)(json_request({"image": "not base64!!"}))

        assert exc_info.value.status_code == 400
        assert recognizer.calls == []

    @pytest.mark.parametrize("payload", [{}, {"image": 123}, {"image": None}])
    def test_missing_image_field(self, recognizer: StubRecognizer, payload):
        with pytest.raises(MissingImageField):
            OCRHandler(recognizer)(json_request(payload))

    @pytest.mark.parametrize("body", [b"{not json", b"\xff\xfe", b""])
    def test_invalid_json(self, recognizer: StubRecognizer, body: bytes):
        with pytest.raises(InvalidJSON):
            OCRHandler(recognizer)(ocr_request(body, "application/json"))

    def test_json_array_rejected(self, recognizer: StubRecognizer):
        with pytest.raises(InvalidJSON):
            OCRHandler(recognizer)(json_request(["aW1n"]))


class TestOCRHandlerMultipart:
    """Tests for multipart bodies on POST /ocr."""

    def test_success(self, recognizer: StubRecognizer):
        body = build_multipart(BOUNDARY, language="en-US")
        request = ocr_request(body, f"multipart/form-data; boundary={BOUNDARY}")

        response = OCRHandler(recognizer)(request)

        assert response.status == 200
        assert response.json()["text"] == "HELLO"
        assert response.json()["language"] == "en-US"
        assert recognizer.calls == [(PNG_BYTES, "en-US")]

    def test_default_language(self, recognizer: StubRecognizer):
        body = build_multipart(BOUNDARY)
        request = ocr_request(body, f"multipart/form-data; boundary={BOUNDARY}")

        response = OCRHandler(recognizer, default_language="zh-Hans")(request)

        assert response.json()["language"] == "zh-Hans"

    def test_missing_boundary(self, recognizer: StubRecognizer):
        request = ocr_request(build_multipart(BOUNDARY), "multipart/form-data")

        with pytest.raises(MissingBoundary) as exc_info:
            OCRHandler(recognizer)(request)

        assert exc_info.value.status_code == 400

    def test_missing_image_part(self, recognizer: StubRecognizer):
        body = build_multipart(BOUNDARY, image=None, language="en-US")
        request = ocr_request(body, f"multipart/form-data; boundary={BOUNDARY}")

        with pytest.raises(MissingImagePart):
            OCRHandler(recognizer)(request)


class TestOCRHandlerErrors:
    """Tests for content-type and collaborator failures."""

    @pytest.mark.parametrize("content_type", ["text/plain", "image/png", ""])
    def test_unsupported_media_type(self, recognizer: StubRecognizer, content_type: str):
        with pytest.raises(UnsupportedMediaType) as exc_info:
            OCRHandler(recognizer)(ocr_request(b"hello", content_type))

        assert exc_info.value.status_code == 415

    def test_recognizer_failure(self):
        recognizer = StubRecognizer(error=ServiceError("No text recognized"))

        with pytest.raises(CollaboratorFailure) as exc_info:
            OCRHandler(recognizer)(json_request({"image": "aW1n"}))

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Internal Server Error: No text recognized"

    def test_unavailable_recognizer(self):
        with pytest.raises(CollaboratorFailure) as exc_info:
            OCRHandler(UnavailableRecognizer())(json_request({"image": "aW1n"}))

        assert exc_info.value.description == "Not implemented yet"

    def test_async_recognizer(self):
        class AsyncRecognizer(TextRecognizer):
            async def recognize(self, image, language=None):
                await asyncio.sleep(0)
                return "ASYNC"

        response = OCRHandler(AsyncRecognizer())(json_request({"image": "aW1n"}))

        assert response.json()["text"] == "ASYNC"

    def test_future_recognizer_failure(self):
        class FutureRecognizer(TextRecognizer):
            def recognize(self, image, language=None):
                future = Future()
                future.set_exception(ServiceError("engine crashed"))
                return future

        with pytest.raises(CollaboratorFailure) as exc_info:
            OCRHandler(FutureRecognizer())(json_request({"image": "aW1n"}))

        assert exc_info.value.description == "engine crashed"

"""
Unit tests for HTTP response building.
"""

import json
import re
from datetime import datetime, timezone

from conftest import parse_raw_response
from toolkitapi.http.response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    format_http_date,
    json_response,
)
from toolkitapi.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)

        assert response.status_line == "HTTP/1.1 404 Not Found"

    def test_to_bytes_framing(self):
        """Serialized responses always carry length, date, server and close."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"Content-Type": "application/json; charset=utf-8"},
            body=b'{"status": "ok"}',
        )

        raw = response.to_bytes("mac-toolkit-api/1.0.0")
        parsed = parse_raw_response(raw)

        assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
        assert parsed.headers["content-length"] == str(len(b'{"status": "ok"}'))
        assert parsed.headers["server"] == "mac-toolkit-api/1.0.0"
        assert parsed.headers["connection"] == "close"
        assert "date" in parsed.headers
        assert parsed.body == b'{"status": "ok"}'

    def test_content_length_matches_body(self):
        """Content-Length is computed from the body, never taken from callers."""
        body = "识别结果".encode("utf-8")
        response = HTTPResponse(headers={"Content-Length": "1"}, body=body)

        parsed = parse_raw_response(response.to_bytes())

        assert int(parsed.headers["content-length"]) == len(body)
        assert parsed.body == body

    def test_connection_close_forced(self):
        response = HTTPResponse(headers={"Connection": "keep-alive"})

        parsed = parse_raw_response(response.to_bytes())

        assert parsed.headers["connection"] == "close"

    def test_empty_body(self):
        raw = HTTPResponse().to_bytes()

        assert raw.endswith(b"\r\n\r\n")
        assert b"Content-Length: 0\r\n" in raw


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_json_response(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"text": "你好"})
            .build())

        assert response.headers["Content-Type"] == "application/json; charset=utf-8"
        assert json.loads(response.body) == {"text": "你好"}
        assert "你好".encode("utf-8") in response.body

    def test_text_response(self):
        response = ResponseBuilder().text("hello").build()

        assert response.body == b"hello"
        assert response.headers["Content-Type"].startswith("text/plain")

    def test_status_from_int(self):
        response = ResponseBuilder().status(415).build()

        assert response.status is HTTPStatus.UNSUPPORTED_MEDIA_TYPE

    def test_no_cache(self):
        response = ResponseBuilder().no_cache().build()

        assert response.get_header("cache-control") == "no-store"

    def test_builder_to_bytes_uses_server_name(self):
        raw = ResponseBuilder(server_name="test/0").text("x").to_bytes()

        assert b"Server: test/0\r\n" in raw


class TestConvenienceFunctions:
    """Tests for json_response() and error_response()."""

    def test_json_response(self):
        response = json_response({"status": "ok"})

        assert response.status == 200
        assert response.json() == {"status": "ok"}

    def test_error_contract(self):
        response = error_response(HTTPStatus.NOT_FOUND, "Not Found")

        assert response.status == 404
        assert response.json() == {"error": "Not Found", "status": 404}

    def test_error_status_from_int(self):
        response = error_response(415, "Unsupported Media Type")

        assert response.status_line == "HTTP/1.1 415 Unsupported Media Type"


class TestHTTPDate:
    """Tests for format_http_date()."""

    def test_format(self):
        dt = datetime(2026, 10, 19, 8, 5, 3, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Mon, 19 Oct 2026 08:05:03 GMT"

    def test_shape(self):
        value = format_http_date(datetime.now(timezone.utc))

        assert re.fullmatch(r"\w{3}, \d{2} \w{3} \d{4} \d{2}:\d{2}:\d{2} GMT", value)


class TestHTTPStatus:
    """Tests for the status enum."""

    def test_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.BAD_REQUEST.phrase == "Bad Request"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_from_unknown_code(self):
        assert HTTPStatus.from_code(418) is HTTPStatus.BAD_REQUEST
        assert HTTPStatus.from_code(599) is HTTPStatus.INTERNAL_SERVER_ERROR

    def test_is_error(self):
        assert HTTPStatus.NOT_FOUND.is_error
        assert not HTTPStatus.OK.is_error

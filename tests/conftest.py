"""
pytest configuration and fixtures.
"""

import base64
import json
import socket
from dataclasses import dataclass, field
from typing import Dict, Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from toolkitapi import APIServer, ServerConfig
from toolkitapi.services import ServiceError, TextRecognizer


# A 1x1 transparent PNG; recognizers in these tests never decode it
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class StubRecognizer(TextRecognizer):
    """Recognizer that returns canned text and remembers its calls."""

    def __init__(self, text: str = "HELLO", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[Tuple[bytes, Optional[str]]] = []

    def recognize(self, image: bytes, language: Optional[str] = None) -> str:
        self.calls.append((image, language))
        if self.error is not None:
            raise self.error
        return self.text


def build_multipart(
    boundary: str,
    image: Optional[bytes] = PNG_BYTES,
    language: Optional[str] = None,
    filename: str = "shot.png",
) -> bytes:
    """Assemble a multipart/form-data body the way curl -F does."""
    body = b""
    if image is not None:
        body += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="image"; filename="{filename}"\r\n'
            f"Content-Type: image/png\r\n"
            f"\r\n"
        ).encode() + image + b"\r\n"
    if language is not None:
        body += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="language"\r\n'
            f"\r\n"
            f"{language}\r\n"
        ).encode()
    body += f"--{boundary}--\r\n".encode()
    return body


def build_request(
    method: str,
    path: str,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """Assemble raw request bytes with a correct Content-Length."""
    lines = [f"{method} {path} HTTP/1.1", "Host: 127.0.0.1"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


@dataclass
class RawResponse:
    """A response as read off the wire."""

    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self):
        return json.loads(self.body.decode("utf-8"))


def parse_raw_response(data: bytes) -> RawResponse:
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    _, status, reason = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return RawResponse(status=int(status), reason=reason, headers=headers, body=body)


class RawClient:
    """Sends raw bytes to a server and reads the response until EOF."""

    def __init__(self, address: Tuple[str, int], timeout: float = 5.0):
        self.address = address
        self.timeout = timeout

    def connect(self) -> socket.socket:
        return socket.create_connection(self.address, timeout=self.timeout)

    def send(self, data: bytes) -> RawResponse:
        with self.connect() as sock:
            sock.sendall(data)
            sock.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return parse_raw_response(b"".join(chunks))

    def request(
        self,
        method: str,
        path: str,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> RawResponse:
        return self.send(build_request(method, path, body, headers))


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /health?verbose=1 HTTP/1.1\r\n"
        b"Host: 127.0.0.1:54321\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_json_ocr_request() -> bytes:
    """Sample POST /ocr request with a JSON body."""
    body = json.dumps({
        "image": base64.b64encode(PNG_BYTES).decode(),
        "language": "en-US",
    }).encode()
    return build_request("POST", "/ocr", body, {"Content-Type": "application/json"})


@pytest.fixture
def recognizer() -> StubRecognizer:
    return StubRecognizer()


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-chosen port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def running_server(config: ServerConfig, recognizer: StubRecognizer) -> Generator[APIServer, None, None]:
    """An APIServer serving in the background with the stub recognizer."""
    server = APIServer(config, recognizer)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def client(running_server: APIServer) -> RawClient:
    return RawClient(running_server.address)

"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per answered request on the "toolkitapi.access" logger.

    TEXT:
        127.0.0.1 "POST /ocr" 200 82B 143.27ms [3f2a9c1e]
        127.0.0.1 "POST /ocr" 415 0B 0.41ms [9b01d7aa] Unsupported Media Type

    JSON:
        {"request_id": "3f2a9c1e", "client_ip": "127.0.0.1", "method": "POST", ...}

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Outcome of next(request)     │ Logged as                           │
    ├──────────────────────────────┼─────────────────────────────────────┤
    │ HTTPResponse                 │ its status, body size               │
    │ APIError                     │ e.status_code + e.message, re-raised│
    │ anything else                │ ERROR with traceback, re-raised     │
    └─────────────────────────────────────────────────────────────────────┘

The connection handler renders the errors; this layer only records them.
Successful responses carry an X-Request-ID header matching the log line.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from ..errors import APIError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from .base import Middleware, NextHandler


logger = logging.getLogger("toolkitapi.access")


@dataclass
class AccessRecord:
    """What the access log knows about one request/response exchange."""

    request_id: str
    client_ip: str
    method: str
    path: str
    status: int
    size: int
    elapsed_ms: float
    error: str = ""

    @classmethod
    def of(
        cls,
        request: HTTPRequest,
        request_id: str,
        started: float,
        status: int,
        size: int = 0,
        error: str = "",
    ) -> "AccessRecord":
        return cls(
            request_id=request_id,
            client_ip=request.client_address[0] or "-",
            method=request.method,
            path=request.path,
            status=status,
            size=size,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            error=error,
        )

    def render(self, log_format: str) -> str:
        if log_format == "json":
            return json.dumps(asdict(self), ensure_ascii=False)
        line = (
            f'{self.client_ip} "{self.method} {self.path}" {self.status} '
            f"{self.size}B {self.elapsed_ms:.2f}ms [{self.request_id}]"
        )
        return f"{line} {self.error}" if self.error else line


class AccessLogMiddleware(Middleware):
    """
    Records every request the router answers. Add it first so it also
    sees requests that end in an APIError.

    Args:
        log_format: "text" or "json" (ServerConfig.log_format).
        skip_paths: Paths never logged, e.g. ["/health"] for polling clients.
    """

    def __init__(self, log_format: str = "text", skip_paths: Optional[Iterable[str]] = None):
        self.log_format = log_format
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except APIError as e:
            self._record(AccessRecord.of(request, request_id, started, e.status_code, error=e.message))
            raise
        except Exception:
            logger.exception(f"[{request_id}] {request.method} {request.path} crashed")
            raise

        self._record(AccessRecord.of(
            request, request_id, started, int(response.status), len(response.body),
        ))
        response.set_header("X-Request-ID", request_id)
        return response

    def _record(self, record: AccessRecord) -> None:
        if record.path not in self.skip_paths:
            logger.info(record.render(self.log_format))

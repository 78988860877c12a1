"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

GET /health: lets a caller find out whether the toolkit API is up before
it starts sending images.

    $ curl -s http://127.0.0.1:54321/health
    {"status": "ok", "timestamp": 1792411200.123, "service": "mac-toolkit-api", "version": "1.0.0"}

The check is shallow: it reports that the process is accepting and
answering requests, nothing about the recognizer. It always returns
200 and is never cached (Cache-Control: no-store).

=============================================================================
"""

import time
from typing import Any, Callable, Dict

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


class HealthHandler:
    """
    Liveness endpoint handler.

    Args:
        service_name: Reported as "service".
        version: Reported as "version".
        clock: Source of the "timestamp" field (seconds since the epoch).
    """

    def __init__(
        self,
        service_name: str = "mac-toolkit-api",
        version: str = "1.0.0",
        clock: Callable[[], float] = time.time,
    ):
        self.service_name = service_name
        self.version = version
        self._clock = clock

    def payload(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": self._clock(),
            "service": self.service_name,
            "version": self.version,
        }

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json(self.payload())
            .no_cache()
            .build())

    __call__ = handle

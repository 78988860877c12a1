"""
=============================================================================
TOOLKIT API SERVER
=============================================================================

Wires the pieces together into the local HTTP API:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──► worker thread per connection                     │
    │                        │                                             │
    │                        ▼                                             │
    │                    Connection.read_request()                         │
    │                        │  None → close                               │
    │                        ▼                                             │
    │                    RequestParser.parse()                             │
    │                        │  MalformedRequest → 400, close              │
    │                        ▼                                             │
    │                    MiddlewarePipeline(AccessLogMiddleware)           │
    │                        ▼                                             │
    │                    Router ──► HealthHandler / OCRHandler             │
    │                        │  APIError → {"error", "status"}             │
    │                        │  anything else → 500                        │
    │                        ▼                                             │
    │                    Connection.send_response() → close                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every failure stops at this boundary as a JSON error response; nothing a
single request does can take the process down.

=============================================================================
"""

import logging
import signal
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .errors import APIError
from .handlers import HealthHandler, OCRHandler
from .http import HTTPRequest, HTTPResponse, HTTPStatus, RequestParser, Router, error_response
from .middleware import AccessLogMiddleware, Middleware, MiddlewarePipeline
from .services import TextRecognizer, UnavailableRecognizer


logger = logging.getLogger(__name__)


class APIServer:
    """
    The toolkit's local HTTP API.

    =========================================================================
    USAGE
    =========================================================================

        # Embedded in an application: non-blocking
        server = APIServer(config, recognizer=TesseractRecognizer())
        server.start()
        ...
        server.stop()

        # As a context manager
        with APIServer(ServerConfig(port=0), recognizer) as server:
            host, port = server.address

        # Standalone: blocks until SIGINT/SIGTERM
        APIServer(config, recognizer).run()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        recognizer: Optional[TextRecognizer] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.recognizer = recognizer or UnavailableRecognizer()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._original_handlers: dict = {}

        self._register_routes()
        if self.config.access_log:
            self._middleware.add(AccessLogMiddleware(log_format=self.config.log_format))

    def _register_routes(self):
        self._router.add_route(
            "GET", "/health",
            HealthHandler(self.config.service_name, self.config.service_version),
            name="health",
        )
        self._router.add_route(
            "POST", "/ocr",
            OCRHandler(
                self.recognizer,
                default_language=self.config.default_language,
                confidence=self.config.confidence,
            ),
            name="ocr",
        )

    # ─────────────────────────────────────────────────────────────────────
    # CONFIGURATION
    # ─────────────────────────────────────────────────────────────────────

    def use(self, middleware: Middleware) -> "APIServer":
        """Add middleware (takes effect on the next start())."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def address(self) -> Tuple[str, int]:
        """(host, bound port); the port is the OS-chosen one for port 0."""
        return self._socket_server.address

    @property
    def connection_count(self) -> int:
        return self._socket_server.connection_count

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    def start(self) -> bool:
        """
        Start serving in the background and return immediately.

        Returns:
            False if the server was already running (nothing changes).
        """
        self._handler = self._middleware.wrap(self._router.handle)
        return self._socket_server.start(self._handle_connection)

    def stop(self) -> bool:
        """
        Close every open connection and release the port.

        Returns:
            False if the server was not running.
        """
        return self._socket_server.stop()

    def run(self):
        """
        Serve until SIGINT or SIGTERM (blocking).

        Configures logging, installs signal handlers for the duration of
        the call and restores the previous ones on the way out.
        """
        self._setup_logging()
        self.start()
        self._setup_signals()

        host, port = self.address
        logger.info(f"{self.config.server_name} ready at http://{host}:{port}")

        try:
            while not self._socket_server.wait_for_shutdown(timeout=0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._restore_signals()
            self.stop()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("toolkitapi").setLevel(level)

    def _setup_signals(self):
        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.stop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def __enter__(self) -> "APIServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # ─────────────────────────────────────────────────────────────────────
    # PER-CONNECTION PIPELINE (runs in the connection's worker thread)
    # ─────────────────────────────────────────────────────────────────────

    def _handle_connection(self, conn: Connection):
        """
        Serve exactly one request on `conn`.

        The listener closes and unregisters the connection after this
        returns, whatever happens here.
        """
        try:
            raw_request = conn.read_request()
        except OSError as e:
            logger.warning(f"[{conn.id}] Read failed: {e}")
            return

        if raw_request is None:
            logger.debug(f"[{conn.id}] Peer closed without sending a request")
            return

        try:
            request = self._parser.parse(raw_request, conn.address)
        except APIError as e:
            logger.info(f"[{conn.id}] Rejected malformed request: {e.message}")
            self._send(conn, error_response(e.status_code, e.message))
            return

        if not conn.advance(ConnectionState.PARSED):
            return
        conn.advance(ConnectionState.DISPATCHING)

        self._send(conn, self.dispatch(request))

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a parsed request through middleware and router.

        Never raises: every failure becomes a JSON error response.
        """
        handler = self._handler or self._middleware.wrap(self._router.handle)
        try:
            return handler(request)
        except APIError as e:
            return error_response(e.status_code, e.message)
        except Exception:
            logger.exception(f"Unhandled error for {request.method} {request.path}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

    def _send(self, conn: Connection, response: HTTPResponse):
        if not conn.send_response(response.to_bytes(self.config.server_name)):
            logger.debug(f"[{conn.id}] Response not delivered")


def create_app(
    config: Optional[ServerConfig] = None,
    recognizer: Optional[TextRecognizer] = None,
) -> APIServer:
    """
    Create the toolkit API server.

    Args:
        config: Server configuration (defaults to ServerConfig()).
        recognizer: Text-recognition collaborator. Without one, /ocr
            answers 500 "Internal Server Error: Not implemented yet".
    """
    return APIServer(config, recognizer)

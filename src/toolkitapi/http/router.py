"""
=============================================================================
ROUTE DISPATCHER
=============================================================================

Maps (method, path) pairs to handler functions.

The API has a fixed, tiny route table, so routes are exact matches on
both method and path: no path parameters, no wildcards, no prefixes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming Request: POST /ocr                                       │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTER                                                      │   │
    │   │  ┌────────────────────────────────────────────────────────┐ │   │
    │   │  │ GET  /health  → HealthHandler                          │ │   │
    │   │  │ POST /ocr     → OCRHandler                ← MATCH!     │ │   │
    │   │  └────────────────────────────────────────────────────────┘ │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   OCRHandler(request)                                               │
    │                                                                      │
    │   Anything else (GET /ocr, POST /health, GET /frobnicate)           │
    │        └──► RouteNotFound → 404 {"error": "Not Found", ...}         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no 405 branch: an unregistered method on a known
path is reported exactly like an unknown path.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import logging

from ..errors import RouteNotFound
from .request import HTTPRequest
from .response import HTTPResponse


logger = logging.getLogger(__name__)

# Handler: takes a request, returns a response (or raises APIError)
Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass(frozen=True)
class Route:
    """A registered (method, path) → handler binding."""

    method: str
    path: str
    handler: Handler
    name: Optional[str] = None


class Router:
    """
    Exact-match HTTP request router.

    Routes can be added directly or with decorators:

        router = Router()
        router.add_route("GET", "/health", health_handler)

        @router.post("/ocr")
        def ocr(request):
            ...
    """

    def __init__(self):
        self._routes: Dict[Tuple[str, str], Route] = {}

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a handler for an exact (method, path) pair.

        Registering the same pair twice replaces the earlier handler.

        Args:
            method: HTTP method, case-insensitive ("get" == "GET")
            path: Exact request path, e.g. "/health"
            handler: Callable taking HTTPRequest, returning HTTPResponse
            name: Optional label used in logs and route listings

        Returns:
            The registered Route.
        """
        route = Route(
            method=method.upper(),
            path=path,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
        )
        key = (route.method, route.path)
        if key in self._routes:
            logger.warning(f"Replacing handler for {route.method} {route.path}")
        self._routes[key] = route
        return route

    def route(self, method: str, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(). Returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("GET", path, name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("POST", path, name)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """Find the route for (method, path), or None."""
        return self._routes.get((method.upper(), path))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        Raises:
            RouteNotFound: For any (method, path) pair without a route.
            APIError: Whatever the handler raises passes through untouched.
        """
        route = self.match(request.method, request.path)
        if route is None:
            raise RouteNotFound()
        return route.handler(request)

    __call__ = handle

    @property
    def routes(self) -> List[Route]:
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Middleware wraps the router so cross-cutting work (today: access
logging) happens around every request without the handlers knowing.

    pipeline = MiddlewarePipeline()
    pipeline.add(AccessLogMiddleware())      # first added = outermost

    dispatch = pipeline.wrap(router.handle)
    response = dispatch(request)

        ┌─────────────────────────────────────────────┐
        │  AccessLogMiddleware                        │
        │  ┌───────────────────────────────────────┐  │
        │  │  router.handle → HealthHandler/OCR... │  │
        │  └───────────────────────────────────────┘  │
        └─────────────────────────────────────────────┘

The request flows inward, the response (or an APIError) flows back out.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

    Subclasses implement __call__(request, next) and must call
    next(request) unless they answer the request themselves.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming HTTP request
            next: The next handler in the chain

        Returns:
            HTTP response (from next() or produced here)
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered list of middleware wrapped around a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware; returns self so calls chain."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap `handler` with every middleware in the pipeline.

        Given [MW1, MW2] the result calls MW1 → MW2 → handler, so the
        list is walked in reverse while wrapping.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)

"""
=============================================================================
REQUEST HANDLERS
=============================================================================

One handler object per endpoint. Handlers are callables taking an
HTTPRequest and returning an HTTPResponse; failures are raised as
APIError subclasses and rendered by the connection handler.

    from toolkitapi.handlers import HealthHandler, OCRHandler

    router.add_route("GET", "/health", HealthHandler())
    router.add_route("POST", "/ocr", OCRHandler(recognizer))

=============================================================================
"""

from .health import HealthHandler
from .ocr import OCRHandler, OCRResult

__all__ = [
    "HealthHandler",
    "OCRHandler",
    "OCRResult",
]

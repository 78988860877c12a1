"""
Request middleware.

    from toolkitapi.middleware import MiddlewarePipeline, AccessLogMiddleware

    pipeline = MiddlewarePipeline().add(AccessLogMiddleware(log_format="json"))
    dispatch = pipeline.wrap(router.handle)
"""

from .access_log import AccessLogMiddleware, AccessRecord
from .base import Middleware, MiddlewarePipeline, NextHandler

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "AccessLogMiddleware",
    "AccessRecord",
]

"""
Middleware: request/response processing layered around handlers.

    base.py          Middleware ABC and MiddlewarePipeline
    compression.py   gzip content negotiation
    logging.py       access log
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .compression import CompressionMiddleware, accepts_gzip, compress_response
from .logging import LoggingMiddleware, RequestLog


__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "CompressionMiddleware",
    "accepts_gzip",
    "compress_response",
    "LoggingMiddleware",
    "RequestLog",
]

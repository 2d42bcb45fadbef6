"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

A middleware sits between the connection loop and a handler:

    request ──► Middleware ──► next(request) ──► Handler
                    │                               │
    response ◄──────┴────────── response ◄──────────┘

It can look at the request before the handler runs, and at (or rewrite)
the response afterwards. Two places use this here:

    LoggingMiddleware       wraps the whole router (one access-log line
                            per request)
    CompressionMiddleware   wraps just the handlers that opt in to gzip

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class AddHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Thing", "1")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process ``request``, calling ``next(request)`` to reach the handler."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Bind this middleware to a single handler.

            router.get("/echo/*text")(CompressionMiddleware().wrap(echo))
        """
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return self(request, handler)

        wrapped.__name__ = getattr(handler, "__name__", "wrapped")
        return wrapped


class MiddlewarePipeline:
    """
    An ordered stack of middleware around one handler.

    The first middleware added is the outermost: it sees the request first
    and the response last.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """Return ``handler`` wrapped in every middleware, outermost first."""
        current = handler
        for middleware in reversed(self._middleware):
            current = middleware.wrap(current)
        return current

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)

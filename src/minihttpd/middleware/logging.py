"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request on the ``minihttpd.access`` logger:

    127.0.0.1 - "GET /echo/abc" 200 3 0.12ms
    ─────┬───   ───────┬──────  ─┬─ ┬ ───┬──
      client        request   status │ duration
                                   body bytes (as sent, i.e. compressed)

The access logger is separate from the per-module loggers so it can be
routed or silenced on its own:

    logging.getLogger("minihttpd.access").setLevel(logging.WARNING)

Nothing is added to the response; the headers a client sees are exactly
the ones the handler produced.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("minihttpd.access")


@dataclass
class RequestLog:
    """A single access-log entry."""
    client_ip: str
    method: str
    path: str
    status_code: int
    content_length: int
    duration_ms: float

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - "{self.method} {self.path}" '
            f'{self.status_code} {self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Logs every request with its status, body size and handling time.

    Should be the outermost middleware so the timing covers everything.
    Handler exceptions are logged and re-raised.
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        entry = RequestLog(
            client_ip=request.client_address[0],
            method=request.method,
            path=request.path,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        logger.log(self.log_level, entry.to_text())

        return response

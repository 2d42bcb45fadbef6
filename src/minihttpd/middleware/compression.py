"""
=============================================================================
GZIP CONTENT NEGOTIATION
=============================================================================

Compresses a response body with gzip when the client says it can take it.

=============================================================================
NEGOTIATION
=============================================================================

    Request:   Accept-Encoding: deflate, gzip , br
                                         ────
                                         literal "gzip" token present?

    yes ──►  body = gzip(body)
             Content-Encoding: gzip
             Content-Length: <compressed size>

    no  ──►  response untouched

The header is split on commas and each token trimmed; only an exact
``gzip`` token counts. Quality values are not interpreted, so
``gzip;q=0.5`` is not a match. No Accept-Encoding header at all means no
compression.

Unlike a general-purpose compression layer there is no size threshold and
no "only if it got smaller" check: when the client asks for gzip, it gets
gzip.

=============================================================================
"""

import gzip
import logging
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


GZIP = "gzip"


def accepts_gzip(accept_encoding: Optional[str]) -> bool:
    """
    Whether an Accept-Encoding value lists the ``gzip`` token.

        >>> accepts_gzip("deflate, gzip")
        True
        >>> accepts_gzip("gzipx")
        False
        >>> accepts_gzip(None)
        False
    """
    if not accept_encoding:
        return False
    return any(token.strip() == GZIP for token in accept_encoding.split(","))


def compress_response(response: HTTPResponse, level: int = 6) -> HTTPResponse:
    """
    gzip the body in place and fix up the headers.

    Content-Length is recomputed from the compressed bytes.
    """
    compressed = gzip.compress(response.body, compresslevel=level)
    logger.debug(f"gzip: {len(response.body)} -> {len(compressed)} bytes")

    response.body = compressed
    response.headers["Content-Encoding"] = GZIP
    response.headers["Content-Length"] = str(len(compressed))
    return response


class CompressionMiddleware(Middleware):
    """
    Applies gzip negotiation to the responses of the handler it wraps.

    Only responses that carry a body (they have a Content-Length header,
    even "0") and are not already encoded are touched.

        echo = CompressionMiddleware().wrap(echo_handler)
    """

    def __init__(self, level: int = 6):
        """
        Args:
            level: gzip compression level, 1 (fastest) to 9 (smallest).
        """
        if not 1 <= level <= 9:
            raise ValueError(f"Invalid gzip level: {level}")
        self.level = level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if not accepts_gzip(request.accept_encoding):
            return response

        if "Content-Length" not in response.headers:
            return response  # no body to compress

        if "Content-Encoding" in response.headers:
            return response

        return compress_response(response, self.level)

"""
Handlers for the routes that need nothing but the request itself.

    GET /               → 200, no body
    GET /echo/{text}    → 200, text/plain, body = {text}
    GET /user-agent     → 200, text/plain, body = User-Agent header
                          400 if the header is missing
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, bad_request, ok


logger = logging.getLogger(__name__)


def root(request: HTTPRequest) -> HTTPResponse:
    return ok()


def echo(request: HTTPRequest) -> HTTPResponse:
    """
    Send back whatever follows ``/echo/`` in the path.

    The text is not percent-decoded: ``/echo/a%20b`` answers ``a%20b``.
    """
    text = request.path_params.get("text", "")
    return ResponseBuilder().text(text).build()


def user_agent(request: HTTPRequest) -> HTTPResponse:
    value = request.user_agent
    if value is None:
        logger.debug("GET /user-agent without a User-Agent header")
        return bad_request()
    return ResponseBuilder().text(value).build()

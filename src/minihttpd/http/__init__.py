"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows what HTTP/1.1 looks like on the wire:

    request.py        Reading the request line, headers and body
    response.py       Building and serializing responses
    router.py         Matching (method, path) to handlers
    status_codes.py   Status codes and reason phrases

    Request                                  Response
    ───────                                  ────────
    METHOD SP PATH SP VERSION CRLF           VERSION SP CODE SP PHRASE CRLF
    Header: Value CRLF                       Header: Value CRLF
    CRLF                                     CRLF
    [Content-Length bytes]                   [Content-Length bytes]

=============================================================================
"""

from .request import HTTPRequest, RequestReader, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                  # 200 OK
    created,             # 201 Created
    bad_request,         # 400 Bad Request
    not_found,           # 404 Not Found
    method_not_allowed,  # 405 Method Not Allowed
    internal_error,      # 500 Internal Server Error
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus


__all__ = [
    "HTTPRequest",
    "RequestReader",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "Router",
    "Route",
    "RouteMatch",
    "HTTPStatus",
]

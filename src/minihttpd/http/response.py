"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

=============================================================================
WIRE FORMAT
=============================================================================

With a body:

    HTTP/1.1 200 OK\r\n
    Content-Type: text/plain\r\n
    Content-Length: 3\r\n             ← exact byte length of what follows
    \r\n
    abc

Without a body, nothing but the status line and the blank line:

    HTTP/1.1 404 Not Found\r\n
    \r\n

The server never adds headers of its own (no Date, no Server, no
Connection). The only headers that ever appear are the ones a handler or
the compression middleware set: Content-Type, Content-Length and
Content-Encoding.

=============================================================================
CONTENT-LENGTH
=============================================================================

The client finds the end of the body by counting bytes, so Content-Length
must match the body that is actually sent, AFTER any compression. The
builder sets it whenever a body is given (including an empty one, so
``/echo/`` answers with ``Content-Length: 0``), and ``to_bytes()`` rewrites
it from ``len(body)`` for any non-empty body.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Handlers usually get one from ResponseBuilder or from the helpers at
    the bottom of this module rather than constructing it directly.
    """
    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)  # Insertion order is wire order
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 201 Created"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header and return self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Replace the body (str is UTF-8 encoded) and keep Content-Length in step."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.headers["Content-Length"] = str(len(self.body))
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize to the exact bytes written on the socket.

            status line CRLF
            (name: value CRLF)*
            CRLF
            body
        """
        headers = dict(self.headers)
        if self.body:
            headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        for name, value in headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return head + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("hello")
            .build())

    Every method except build() and to_bytes() returns the builder.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: Optional[bytes] = None  # None = no body at all

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body. Strings are UTF-8 encoded."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Plain-text body with ``Content-Type: text/plain``."""
        self._headers["Content-Type"] = "text/plain"
        return self.body(text)

    def octet_stream(self, data: bytes) -> "ResponseBuilder":
        """Binary body with ``Content-Type: application/octet-stream``."""
        self._headers["Content-Type"] = "application/octet-stream"
        return self.body(data)

    def build(self) -> HTTPResponse:
        """
        Construct the HTTPResponse.

        Content-Length is appended after the other headers when a body
        was set, so it always follows Content-Type on the wire.
        """
        headers = dict(self._headers)
        body = b""
        if self._body is not None:
            body = self._body
            headers["Content-Length"] = str(len(body))
        return HTTPResponse(status=self._status, headers=headers, body=body)

    def to_bytes(self) -> bytes:
        """build() and serialize in one step."""
        return self.build().to_bytes()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Bodyless responses for the statuses the handlers return. The body, when
# there is one, is always built explicitly with ResponseBuilder.
#
# =============================================================================


def _empty(status: HTTPStatus) -> HTTPResponse:
    return ResponseBuilder().status(status).build()


def ok() -> HTTPResponse:
    """200 OK, no body."""
    return _empty(HTTPStatus.OK)


def created() -> HTTPResponse:
    """201 Created, no body. Returned after a successful file upload."""
    return _empty(HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    """400 Bad Request, no body."""
    return _empty(HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """404 Not Found, no body."""
    return _empty(HTTPStatus.NOT_FOUND)


def method_not_allowed() -> HTTPResponse:
    """
    405 Method Not Allowed, no body.

    No Allow header: the only headers this server emits are
    Content-Type, Content-Length and Content-Encoding.
    """
    return _empty(HTTPStatus.METHOD_NOT_ALLOWED)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, no body."""
    return _empty(HTTPStatus.INTERNAL_SERVER_ERROR)

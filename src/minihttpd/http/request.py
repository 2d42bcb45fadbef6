"""
=============================================================================
HTTP REQUEST READER
=============================================================================

Turns bytes on a connection into HTTPRequest objects, one request at a time.

=============================================================================
WHAT GETS READ, AND WHEN
=============================================================================

    GET /echo/abc HTTP/1.1\r\n          ◄── request line    ┐
    Host: localhost:4221\r\n            ◄── header          │ read by
    Accept-Encoding: gzip\r\n           ◄── header          │ RequestReader
    \r\n                                ◄── end of headers  ┘
    ...body (Content-Length bytes)...   ◄── read later, by the handler

The reader stops at the blank line. It does NOT touch the body: only the
handler knows whether it wants one, so it calls ``request.read_body()``,
which pulls exactly Content-Length bytes off the same connection. Until that
happens the body bytes are still sitting in the connection buffer, which is
why a handler that ignores a body must still drain it (see the files
handler) or the next request on the connection would start mid-body.

=============================================================================
LENIENCY
=============================================================================

    Request line     Needs at least METHOD and PATH. Anything shorter is
                     an HTTPParseError and the connection is dropped.
    Version          Optional; defaults to HTTP/1.1.
    Header lines     Split at the first colon, both sides trimmed. A line
                     with no colon is skipped.
    Duplicates       The last occurrence wins.
    Header names     Stored lower-cased, so lookups ignore case.
    Header block     At most max_header_size bytes in total, else
                     HTTPParseError.
    Content-Length   ASCII digits only. Anything else means no body.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    The connection loop answers this by closing the connection without
    writing a response.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


BodyReader = Callable[[int], bytes]


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         Request method token, e.g. "GET".
        path:           Request target exactly as sent (no percent-decoding,
                        query string included).
        version:        "HTTP/1.1" unless the request line says otherwise.
        headers:        Header name (lower-cased) → value.
        path_params:    Values captured by the router, e.g. {"text": "abc"}.
        client_address: (ip, port) of the peer.
        body:           The body once read, or a body supplied up front.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)
    body: Optional[bytes] = None

    _body_reader: Optional[BodyReader] = field(default=None, repr=False)

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Case-insensitive header lookup.

            request.get_header("Content-Length")
            request.get_header("content-length")    # same thing
        """
        return self.headers.get(name.lower(), default)

    @property
    def content_length(self) -> int:
        """
        Declared body size; 0 when the header is missing or not a plain
        run of ASCII digits ("+5", "1_0", "٥" and "-1" all count as 0).
        """
        value = self.headers.get("content-length", "")
        if not (value.isascii() and value.isdigit()):
            return 0
        return int(value)

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get("user-agent")

    @property
    def accept_encoding(self) -> Optional[str]:
        return self.headers.get("accept-encoding")

    @property
    def wants_close(self) -> bool:
        """True when the client sent ``Connection: close`` (any letter case)."""
        return self.headers.get("connection", "").strip().lower() == "close"

    # =========================================================================
    # BODY
    # =========================================================================

    def read_body(self) -> bytes:
        """
        Read the request body, exactly Content-Length bytes.

        The first call pulls the bytes off the connection; later calls
        return the same bytes without touching the socket again.

        Raises:
            ConnectionError: If the client closes before the whole body
                has arrived.
        """
        if self.body is None:
            if self._body_reader is None:
                self.body = b""
            else:
                self.body = self._body_reader(self.content_length)
        return self.body


class RequestReader:
    """
    Reads requests off a line-oriented byte source.

    The source is anything with ``read_line()`` and ``read_exact(n)``; in
    the server that is a ``Connection``. One reader serves every request on
    its connection, in order.

    Usage:
        reader = RequestReader(conn)
        while (request := reader.read_request(conn.address)) is not None:
            ...
    """

    def __init__(self, source, encoding: str = "utf-8", max_header_size: int = 64 * 1024):
        """
        Args:
            source: Byte source with read_line() and read_exact().
            encoding: Used to decode the request line and headers.
            max_header_size: Most bytes of header lines per request.
        """
        self._source = source
        self._encoding = encoding
        self.max_header_size = max_header_size

    def read_request(self, client_address: Tuple[str, int] = ("", 0)) -> Optional[HTTPRequest]:
        """
        Read the request line and header block of the next request.

        Returns:
            The request (body not yet read), or None if the stream ended
            before the first byte of a new request.

        Raises:
            HTTPParseError: If the request line is malformed or the header
                block is too large.
        """
        raw_line = self._source.read_line()
        if raw_line is None:
            return None

        method, path, version = self.parse_request_line(self._decode(raw_line))
        headers = self._read_headers()

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            client_address=client_address,
            _body_reader=self._source.read_exact,
        )

    def _read_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        total = 0

        while True:
            raw_line = self._source.read_line()
            # EOF inside the header block ends it just like a blank line
            if not raw_line:
                break

            total += len(raw_line)
            if total > self.max_header_size:
                raise HTTPParseError(f"Header block exceeds {self.max_header_size} bytes")

            parsed = self.parse_header_line(self._decode(raw_line))
            if parsed is None:
                logger.debug(f"Skipping malformed header line: {raw_line!r}")
                continue

            name, value = parsed
            headers[name.lower()] = value

        return headers

    def _decode(self, raw: bytes) -> str:
        return raw.decode(self._encoding, errors="replace")

    # =========================================================================
    # LINE PARSERS
    # =========================================================================

    @staticmethod
    def parse_request_line(line: str) -> Tuple[str, str, str]:
        """
        Split ``METHOD PATH [VERSION]`` on whitespace.

        Raises:
            HTTPParseError: If fewer than two tokens are present.
        """
        parts = line.split()
        if len(parts) < 2:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, path = parts[0], parts[1]
        version = parts[2] if len(parts) > 2 else "HTTP/1.1"
        return method, path, version

    @staticmethod
    def parse_header_line(line: str) -> Optional[Tuple[str, str]]:
        """
        Split ``Name: value`` at the first colon.

        Returns:
            (name, value), both trimmed, or None if there is no colon.
        """
        name, sep, value = line.partition(":")
        if not sep:
            return None
        return name.strip(), value.strip()

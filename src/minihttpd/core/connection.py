"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the two read primitives the HTTP
layer needs, plus writing and closing.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

recv() hands back whatever the kernel has, not whole lines and not whole
requests:

    Client sends:   "GET / HTTP/1.1\r\nHost: x\r\n\r\n"

    recv() #1  →    "GET / HT"
    recv() #2  →    "TP/1.1\r\nHost: x\r\n\r\nGET /ec"     ← next request!
    recv() #3  →    "ho/abc HTTP/1.1\r\n..."

So every byte received goes into ``_buffer`` and the readers below carve
exactly what they need out of it. Whatever is left over (the start of the
next request on a keep-alive connection) stays in the buffer for the next
call. The buffer lives as long as the connection does.

=============================================================================
READ PRIMITIVES
=============================================================================

    read_line()      Up to the next CRLF. Used for the request line and
                     each header line. Returns None on a clean EOF.

    read_exact(n)    Exactly n bytes. Used for the request body, sized by
                     Content-Length. Raises ConnectionError on a short read.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ─┐
              ▲                                                │
              └────────────────────────────────────────────────┘
      (any state) ──► CLOSING ──► CLOSED

=============================================================================
"""

import socket
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


CRLF = b"\r\n"


class ConnectionState(Enum):
    """Lifecycle states of a client connection."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Waiting for / reading a request
    PROCESSING = "processing"  # Handler is running
    WRITING = "writing"        # Sending the response
    KEEP_ALIVE = "keep_alive"  # Response sent, next request expected
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection with buffered reads.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current ConnectionState.
        requests_handled: Number of responses written so far.
        buffer_size: Bytes requested per recv() call.
        timeout: Socket timeout in seconds, None to block forever.
        max_line_size: Longest request/header line accepted.
        max_body_size: Largest body read_exact() will buffer.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_line_size: int = 64 * 1024
    max_body_size: int = 10 * 1024 * 1024

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        # settimeout(None) puts the socket back into plain blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[bytes]:
        """
        Read one CRLF-terminated line.

        The terminator is stripped. An empty line comes back as b"" (that
        is how the end of the header block looks).

        If the peer closes the stream before sending a single byte of the
        line, None is returned. If it closes part-way through, whatever was
        received is returned as the final, unterminated line.

        Returns:
            The line without its CRLF, or None on a clean EOF.

        Raises:
            ValueError: If the line grows beyond max_line_size.
            OSError: On socket errors, including timeouts.
        """
        self.state = ConnectionState.READING

        while True:
            end = self._buffer.find(CRLF)
            if end != -1:
                line = bytes(self._buffer[:end])
                del self._buffer[:end + len(CRLF)]
                return line

            if len(self._buffer) > self.max_line_size:
                raise ValueError(f"Line too long: {len(self._buffer)} bytes")

            chunk = self._recv()
            if not chunk:
                # EOF: hand back any partial line, then report "nothing"
                if not self._buffer:
                    return None
                line = bytes(self._buffer)
                self._buffer.clear()
                return line.rstrip(b"\r")

            self._buffer += chunk

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Bytes already sitting in the buffer are used first, so a body that
        arrived in the same packet as the headers is not lost.

        Raises:
            ValueError: If ``size`` is larger than max_body_size.
            ConnectionError: If the peer closes before ``size`` bytes arrive.
            OSError: On socket errors, including timeouts.
        """
        if size <= 0:
            return b""

        if size > self.max_body_size:
            raise ValueError(f"Body too large: {size} > {self.max_body_size} bytes")

        while len(self._buffer) < size:
            chunk = self._recv()
            if not chunk:
                raise ConnectionError(
                    f"Connection closed after {len(self._buffer)} of {size} body bytes"
                )
            self._buffer += chunk

        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def _recv(self) -> bytes:
        """
        recv() wrapper.

        A peer that resets the connection is treated like one that closed
        it: both end the conversation.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> None:
        """
        Write a complete serialized response.

        sendall() keeps calling send() until every byte is out, so the
        status line, headers and body leave as one uninterrupted sequence.

        Raises:
            OSError: If the peer has gone away or the write times out.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        self.requests_handled += 1

    def set_keep_alive(self):
        """Mark the connection as ready for its next request."""
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the socket. Safe to call more than once.

        shutdown(SHUT_RDWR) first so the peer sees FIN straight away even if
        another reference to the socket object is still alive.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

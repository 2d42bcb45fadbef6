"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Generator, Optional

import pytest

from minihttpd import HTTPServer, ServerConfig
from minihttpd.core import Connection


@pytest.fixture
def sample_get_request() -> bytes:
    """A keep-alive GET with a few headers."""
    return (
        b"GET /echo/hello HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest/1.0\r\n"
        b"Accept-Encoding: gzip\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """A POST to /files/ with a small body."""
    body = b"quarterly numbers"
    return (
        b"POST /files/report.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    """An empty base directory for file routes."""
    directory = tmp_path / "files"
    directory.mkdir()
    return directory


@pytest.fixture
def make_connection() -> Generator[Callable[[bytes], Connection], None, None]:
    """
    Build a Connection whose peer has already sent ``data`` and closed
    its sending side.
    """
    sockets = []

    def factory(data: bytes, close_peer: bool = True) -> Connection:
        server_side, client_side = socket.socketpair()
        sockets.extend([server_side, client_side])
        client_side.sendall(data)
        if close_peer:
            client_side.shutdown(socket.SHUT_WR)
        return Connection(socket=server_side, address=("127.0.0.1", 50000))

    yield factory

    for sock in sockets:
        sock.close()


# =============================================================================
# LIVE SERVER
# =============================================================================


@dataclass
class RawResponse:
    """A response as read back off the wire by the test client."""
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    header_lines: list = field(default_factory=list)
    body: bytes = b""


def read_response(stream) -> Optional[RawResponse]:
    """
    Read one response from a socket file object.

    Returns None if the server closed the connection instead.
    """
    status_line = stream.readline()
    if not status_line:
        return None

    _, code, reason = status_line.decode().rstrip("\r\n").split(" ", 2)
    response = RawResponse(status=int(code), reason=reason)

    while True:
        line = stream.readline().decode().rstrip("\r\n")
        if not line:
            break
        response.header_lines.append(line)
        name, _, value = line.partition(":")
        response.headers[name.strip().lower()] = value.strip()

    length = int(response.headers.get("content-length", 0))
    response.body = stream.read(length) if length else b""
    return response


class Client:
    """One persistent client connection to the live server."""

    def __init__(self, port: int):
        self.sock = socket.create_connection(("127.0.0.1", port), timeout=5.0)
        self.stream = self.sock.makefile("rb")

    def send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def request(self, data: bytes) -> Optional[RawResponse]:
        self.send(data)
        return read_response(self.stream)

    def read_response(self) -> Optional[RawResponse]:
        return read_response(self.stream)

    def is_closed_by_server(self) -> bool:
        """True once the server has closed its end (recv sees EOF)."""
        try:
            return self.stream.read(1) == b""
        except ConnectionResetError:
            return True

    def close(self):
        self.stream.close()
        self.sock.close()


class LiveServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def client(self) -> Client:
        return Client(self.port)


def _live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    live = LiveServer(HTTPServer(config))
    live.start()
    try:
        yield live
    finally:
        live.stop()


@pytest.fixture
def live_server(files_dir: Path) -> Generator[LiveServer, None, None]:
    """A running server with a files directory, on an OS-assigned port."""
    yield from _live_server(ServerConfig(port=0, directory=str(files_dir)))


@pytest.fixture
def live_server_small_limits(files_dir: Path) -> Generator[LiveServer, None, None]:
    """A running server with tight header and body limits."""
    yield from _live_server(ServerConfig(
        port=0, directory=str(files_dir), max_header_size=200, max_body_size=16,
    ))


@pytest.fixture
def live_server_no_dir() -> Generator[LiveServer, None, None]:
    """A running server without a files directory."""
    yield from _live_server(ServerConfig(port=0))


@pytest.fixture
def client(live_server: LiveServer) -> Generator[Client, None, None]:
    c = live_server.client()
    yield c
    c.close()

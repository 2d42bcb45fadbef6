"""
Core networking: the listening socket and per-client connections.

    socket_server.py   bind / listen / accept, one thread per client
    connection.py      buffered line and fixed-length reads over a socket
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer


__all__ = ["Connection", "ConnectionState", "SocketServer"]

"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create, bind, listen, accept. Each accepted
client is wrapped in a Connection and handed to its own worker thread.

=============================================================================
ONE THREAD PER CONNECTION
=============================================================================

    ┌──────────────────────┐
    │  Listening socket    │  accept() loop, main thread
    └──────────┬───────────┘
               │ accept()
       ┌───────┼────────────────┬──────────────── ...
       ▼       ▼                ▼
    Thread  Thread           Thread              one per client,
    conn-a  conn-b           conn-c              no pool, no cap

There is no limit on the number of worker threads and no queueing: every
accepted connection gets a thread straight away. Workers are daemon
threads, so an interrupted server process exits without waiting for idle
keep-alive clients to hang up.

=============================================================================
SHUTDOWN
=============================================================================

accept() runs with a 1 second timeout so the loop can notice
``shutdown()`` (called from a signal handler or another thread) without
needing a connection to arrive first.

SIGINT and SIGTERM handlers are only installed when start() runs on the
main thread; Python refuses signal.signal() anywhere else.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Accepts TCP connections and runs a handler for each on its own thread.

    Usage:
        def handle(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle)        # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound; differs from the configured one when
        the configured port is 0.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind right after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called with each new Connection, on a fresh
                daemon thread. It owns the connection from then on.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()
        self._ready.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # poll self._running again
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_body_size=self.config.max_body_size,
            )
            logger.debug(f"[{conn.id}] Accepted connection from {client_address[0]}:{client_address[1]}")

            worker = threading.Thread(
                target=connection_handler,
                args=(conn,),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            worker.start()

    def shutdown(self):
        """Stop accepting connections. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready.wait(timeout)

"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together: the socket server accepts, each connection gets
a worker thread running the connection loop, and the loop drives the
reader, the router and the response writer.

=============================================================================
ROUTES
=============================================================================

    GET  /               root         200
    GET  /echo/*text     echo         200 text/plain, gzip-negotiable
    GET  /files/*name    files.get    200 / 400 / 404 / 500
    GET  /user-agent     user_agent   200 / 400
    POST /files/*name    files.post   201 / 400 / 500

    other GET or POST    404
    any other method     405

=============================================================================
THE CONNECTION LOOP (one per worker thread)
=============================================================================

    ┌──────────────────┐
    │ read request     │──── EOF before a new request ─────────┐
    │ line + headers   │──── malformed line / headers too big ─┤
    └────────┬─────────┘──── I/O error ────────────────────────┤
             │                                                 │
    ┌────────▼─────────┐                                       │
    │ Connection:      │──── yes (no response is written) ─────┤
    │ close?           │                                       │
    │ body too big?    │──── yes (no response is written) ─────┤
    └────────┬─────────┘                                       │
             │ no                                              │
    ┌────────▼─────────┐                                       │
    │ dispatch         │  middleware → router → handler        │
    │ drain body       │  any body bytes the handler left      │
    └────────┬─────────┘                                       │
             │                                                 │
    ┌────────▼─────────┐                                       │
    │ write response   │──── I/O error ────────────────────────┤
    └────────┬─────────┘                                       │
             │                                                 ▼
             └──► next request                          close the socket

Every response is for exactly one request, written in full with a single
sendall() before the next request is read, so responses on a connection
come out in request order.

Errors stay inside their connection: nothing a client does can stop the
accept loop or another client's thread.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .handlers import FileHandler, echo, root, user_agent
from .http import (
    HTTPParseError, HTTPRequest, HTTPResponse, RequestReader, Router,
    internal_error,
)
from .middleware import CompressionMiddleware, LoggingMiddleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    The HTTP/1.1 server.

    Usage:
        server = HTTPServer(ServerConfig(directory="/tmp/files"))
        server.run()            # blocks until SIGINT / SIGTERM

    Args:
        config: Server configuration; defaults to ServerConfig().

    Raises:
        ValueError: If the configuration is invalid.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)

        self._files = FileHandler(self.config.directory)
        self._router = self._build_router()

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware())
        self._handler = self._middleware.wrap(self._router.handle)

        self._running = False

    def _build_router(self) -> Router:
        router = Router()
        gzip = CompressionMiddleware()

        router.get("/")(root)
        router.get("/echo/*text")(gzip.wrap(echo))
        router.get("/files/*name")(self._files.get)
        router.get("/user-agent")(user_agent)
        router.post("/files/*name")(self._files.post)

        return router

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self):
        """(host, port) the server is listening on."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Start serving. Blocks until shutdown() or a termination signal.

        Args:
            configure_logging: Set up the root logger from
                config.log_level. Pass False when the caller has its own
                logging setup.
        """
        if configure_logging:
            self._setup_logging()

        self._running = True

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        if self.config.directory:
            logger.info(f"Serving files from {self.config.directory}")
        else:
            logger.info("No directory configured, /files/ routes will answer 500")
        for line in self._router.describe():
            logger.debug(f"Route: {line}")

        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections; run() returns shortly after."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttpd").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Produce the response for one request.

        An unexpected exception in a handler becomes a 500. Socket errors
        (a body that never fully arrives, for instance) are not caught:
        they end the connection, not just the request.
        """
        try:
            return self._handler(request)
        except OSError:
            raise
        except Exception:
            logger.exception(f"Handler error for {request.method} {request.path}")
            return internal_error()

    def _process_connection(self, conn: Connection):
        """
        Serve every request on one connection, then close it.

        Runs on the connection's own worker thread.
        """
        reader = RequestReader(conn, max_header_size=self.config.max_header_size)

        with conn:
            while True:
                try:
                    request = reader.read_request(conn.address)
                except (HTTPParseError, ValueError) as e:
                    logger.debug(f"[{conn.id}] Bad request, closing: {e}")
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Read failed, closing: {e}")
                    break

                if request is None:
                    break  # client closed the connection

                if request.wants_close:
                    logger.debug(f"[{conn.id}] Client sent Connection: close")
                    break

                if request.content_length > self.config.max_body_size:
                    logger.warning(
                        f"[{conn.id}] Body of {request.content_length} bytes "
                        f"exceeds {self.config.max_body_size}, closing"
                    )
                    break

                conn.state = ConnectionState.PROCESSING

                try:
                    response = self.handle_request(request)
                    # bytes the handler did not ask for still belong to this request
                    request.read_body()
                    conn.send_response(response.to_bytes())
                except OSError as e:
                    logger.warning(f"[{conn.id}] Connection error: {e}")
                    break
                except Exception:
                    logger.exception(f"[{conn.id}] Unexpected error, closing connection")
                    break

                conn.set_keep_alive()

"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings in one frozen dataclass, built once at startup and shared
read-only by every connection thread.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌────────────────────┐   ┌────────────────────┐   ┌────────────────────┐
    │  Defaults          │   │  Environment       │   │  Command line      │
    │  (this file)       │ ◄─│  MINIHTTPD_*       │ ◄─│  --directory etc.  │
    └────────────────────┘   └────────────────────┘   └────────────────────┘
                                  from_env()              __main__.py

Nothing reads configuration from module globals: HTTPServer receives a
ServerConfig and passes what each part needs down to it.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    Frozen: once the server is running nothing can change it, so worker
    threads read it without locking. Use ``dataclasses.replace`` to derive
    a modified copy.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to."""

    port: int = 4221
    """Port to listen on. 0 lets the OS pick one (handy in tests)."""

    backlog: int = 128
    """Length of the kernel's queue of not-yet-accepted connections."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Per-socket read/write timeout in seconds.

    None blocks forever: a client that declares a Content-Length and never
    sends the body keeps its worker thread waiting. A number turns that
    wait into an I/O error that closes the connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_header_size: int = 64 * 1024
    """
    Most bytes of header lines accepted per request (CRLFs not counted).
    A request over the limit closes the connection without a response.
    """

    max_body_size: int = 10 * 1024 * 1024
    """Largest Content-Length accepted; a bigger one closes the connection."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    directory: Optional[str] = None
    """
    Base directory for /files/. None disables file routes: they answer
    500 Internal Server Error.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    @property
    def files_enabled(self) -> bool:
        return self.directory is not None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

            MINIHTTPD_HOST        (default 127.0.0.1)
            MINIHTTPD_PORT        (default 4221)
            MINIHTTPD_DIRECTORY   (default: unset, file routes disabled)
            MINIHTTPD_TIMEOUT     (default: unset, no timeout)
            MINIHTTPD_LOG_LEVEL   (default INFO)
        """
        timeout = os.getenv("MINIHTTPD_TIMEOUT")
        return cls(
            host=os.getenv("MINIHTTPD_HOST", "127.0.0.1"),
            port=int(os.getenv("MINIHTTPD_PORT", "4221")),
            directory=os.getenv("MINIHTTPD_DIRECTORY") or None,
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("MINIHTTPD_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Check the values before the server starts.

        Raises:
            ValueError: Describing the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_header_size < 1:
            raise ValueError("max_header_size must be >= 1")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.directory is not None and not os.path.isdir(self.directory):
            raise ValueError(f"Not a directory: {self.directory}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {self.log_level}")

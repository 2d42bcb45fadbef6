"""
=============================================================================
MINIHTTPD CLI ENTRY POINT
=============================================================================

    # Listen on 127.0.0.1:4221, file routes disabled
    python -m minihttpd

    # Serve and accept files under /tmp/files
    python -m minihttpd --directory /tmp/files

    # Drop clients that stall for more than 10 seconds
    python -m minihttpd --directory /tmp/files --timeout 10

Defaults for every option can also come from the environment
(MINIHTTPD_HOST, MINIHTTPD_PORT, MINIHTTPD_DIRECTORY, MINIHTTPD_TIMEOUT,
MINIHTTPD_LOG_LEVEL); a flag on the command line wins over the variable.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal HTTP/1.1 server on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minihttpd                               # 127.0.0.1:4221
  minihttpd --directory /tmp/files        # enable /files/
  minihttpd --port 8080 --log-level DEBUG
        """
    )

    parser.add_argument(
        "--directory", "-d",
        default=defaults.directory,
        help="Base directory for /files/ (default: none, /files/ answers 500)"
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help="Socket read/write timeout in seconds (default: wait forever)"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=defaults.log_level.upper(),
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttpd {__version__}"
    )

    return parser


def parse_config(argv=None) -> ServerConfig:
    """
    Build a ServerConfig from the environment and the command line.

    ``--directory`` may be repeated; the last one wins.
    """
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        directory=args.directory,
        timeout=args.timeout,
        log_level=args.log_level,
    )


def main(argv=None) -> int:
    try:
        config = parse_config(argv)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

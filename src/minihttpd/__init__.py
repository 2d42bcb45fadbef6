"""
=============================================================================
MINIHTTPD - A Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

No http.server, no framework: request lines, headers, bodies and responses
are read and written by hand over TCP sockets.

=============================================================================
WHAT IT SERVES
=============================================================================

    GET  /                 200, empty
    GET  /echo/{text}      {text} back as text/plain (gzip if asked for)
    GET  /user-agent       the User-Agent header back as text/plain
    GET  /files/{name}     a file from --directory
    POST /files/{name}     store the request body as a file in --directory

Connections are persistent: a client can send request after request on one
socket until it closes it or sends ``Connection: close``.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttpd)
    ├── server.py            # HTTPServer and the connection loop
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # accept loop, thread per connection
    │   └── connection.py    # buffered socket reads
    ├── http/
    │   ├── request.py       # RequestReader, HTTPRequest
    │   ├── response.py      # HTTPResponse, ResponseBuilder
    │   ├── router.py        # Router
    │   └── status_codes.py  # HTTPStatus
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── compression.py   # gzip negotiation
    │   └── logging.py       # access log
    └── handlers/
        ├── basic.py         # /, /echo, /user-agent
        └── files.py         # /files (sandboxed)

=============================================================================
QUICK START
=============================================================================

    from minihttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=4221, directory="/tmp/files"))
    server.run()

or from a shell:

    python -m minihttpd --directory /tmp/files

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]

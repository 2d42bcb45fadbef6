"""
=============================================================================
FILE HANDLER
=============================================================================

Reads and writes files under the directory given with ``--directory``.

    GET  /files/{name}    → 200 + file bytes (application/octet-stream)
    POST /files/{name}    → 201, request body stored as the file

=============================================================================
THE GUARD, IN ORDER
=============================================================================

    1. POST only: read the whole body off the connection first, whatever
       happens next. The next request on the connection starts right after
       it.

    2. ".." anywhere in {name}        → 400 Bad Request
                                        (filesystem never touched)

    3. no --directory configured      → 500 Internal Server Error

    4. Resolve base/{name}, following symlinks, and require the result to
       be inside the resolved base directory.

           GET:  resolve strictly (the file must exist), must be a regular
                 file. ANY failure here or while reading → 404, so the
                 client cannot tell "missing" from "outside the sandbox".

           POST: resolve what exists of the path, then create/truncate and
                 write. ANY failure → 500.

Step 4 is what stops the escapes that a substring check cannot see:

    base/
    ├── notes.txt
    └── link ──► /etc            GET /files/link/passwd   → 404
                                 POST /files/link/x       → 500

and absolute names (``/files//etc/passwd`` gives {name} = "/etc/passwd",
and ``base / "/etc/passwd"`` is just "/etc/passwd").

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder,
    bad_request, created, internal_error, not_found,
)


logger = logging.getLogger(__name__)


TRAVERSAL_MARKER = ".."


class FileHandler:
    """
    GET/POST handlers for ``/files/*name``, confined to one directory.

        files = FileHandler(config.directory)
        router.get("/files/*name")(files.get)
        router.post("/files/*name")(files.post)

    Args:
        directory: Base directory, or None when file routes are disabled.
    """

    def __init__(self, directory: Optional[str] = None):
        self.base_dir: Optional[Path] = Path(directory) if directory else None

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def get(self, request: HTTPRequest) -> HTTPResponse:
        name = request.path_params.get("name", "")

        rejected = self._reject(name)
        if rejected is not None:
            return rejected

        content = self.read_file(name)
        if content is None:
            return not_found()

        return ResponseBuilder().octet_stream(content).build()

    def post(self, request: HTTPRequest) -> HTTPResponse:
        body = request.read_body()
        name = request.path_params.get("name", "")

        rejected = self._reject(name)
        if rejected is not None:
            return rejected

        if not self.write_file(name, body):
            return internal_error()

        return created()

    def _reject(self, name: str) -> Optional[HTTPResponse]:
        """The checks shared by GET and POST, before any filesystem access."""
        if TRAVERSAL_MARKER in name:
            logger.warning(f"Path traversal attempt: {name!r}")
            return bad_request()

        if self.base_dir is None:
            logger.warning("File route requested but no directory is configured")
            return internal_error()

        return None

    # =========================================================================
    # SANDBOXED FILESYSTEM ACCESS
    # =========================================================================

    def read_file(self, name: str) -> Optional[bytes]:
        """
        Read ``base/name`` as bytes.

        Returns:
            The file content, or None if it cannot be read from inside the
            base directory for any reason.
        """
        try:
            base = self.base_dir.resolve(strict=True)
            target = (self.base_dir / name).resolve(strict=True)
            target.relative_to(base)
            if not target.is_file():
                logger.debug(f"Not a regular file: {target}")
                return None
            return target.read_bytes()
        except (OSError, RuntimeError, ValueError) as e:
            # RuntimeError: symlink loop; ValueError: outside the base dir
            logger.debug(f"Cannot read {name!r}: {e}")
            return None

    def write_file(self, name: str, data: bytes) -> bool:
        """
        Create or truncate ``base/name`` and write ``data`` to it.

        The parent directory must already exist.

        Returns:
            True on success, False otherwise.
        """
        try:
            base = self.base_dir.resolve(strict=True)
            target = (self.base_dir / name).resolve()
            target.relative_to(base)
            target.write_bytes(data)
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning(f"Cannot write {name!r}: {e}")
            return False

        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return True

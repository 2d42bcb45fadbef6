"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes and reason phrases used on the status line:

    HTTP/1.1 404 Not Found\r\n
             ─┬─ ────┬────
              │      └── Reason phrase (for humans)
              └───────── Status code (for machines)

Only the codes this server can produce are listed here.

=============================================================================
WHICH CODE FOR WHICH FAILURE?
=============================================================================

    400 Bad Request            The client asked for something we refuse
                               to even look at (".." in a file path,
                               missing User-Agent on /user-agent).
    404 Not Found              No route, or a file that cannot be read.
    405 Method Not Allowed     Anything other than GET and POST.
    500 Internal Server Error  No --directory configured, or a file
                               write that failed.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    Being an IntEnum, members compare equal to plain integers:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line (e.g. "Not Found")."""
        return _STATUS_PHRASES.get(self, "Unknown")

    def __str__(self) -> str:
        # "404", not "HTTPStatus.NOT_FOUND", when formatted into a status line
        return str(self.value)


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}

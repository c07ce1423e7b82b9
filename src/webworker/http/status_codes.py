"""
=============================================================================
HTTP STATUS CODES
=============================================================================

A ConnectionWorker only ever answers with one of two statuses:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   200 OK          The file exists, is regular and readable          │
    │   404 Not Found   Anything else (missing, directory, outside root,  │
    │                   unreadable before headers were sent)              │
    └─────────────────────────────────────────────────────────────────────┘

The status is decided exactly once per request, before the first header
byte goes out, and never changes afterward.

HTTP/1.1 200 OK
         ─── ──
          │   │
          │   └── Reason phrase (.phrase)
          └────── Status code (the enum value)

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes a worker can send.

    IntEnum, so members compare and format as plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> f"{HTTPStatus.NOT_FOUND.value} {HTTPStatus.NOT_FOUND.phrase}"
        '404 Not Found'
    """

    OK = 200            # File found and readable
    NOT_FOUND = 404     # Everything else

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        """True for 2xx."""
        return 200 <= self < 300


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}

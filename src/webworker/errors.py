"""
=============================================================================
WORKER ERRORS
=============================================================================

Every failure a ConnectionWorker can hit belongs to one of a few families.
Each family maps to exactly one outcome for the client:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ERROR → OUTCOME MAPPING                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   RequestReadError   Stream ended/failed before the blank line      │
    │                      └── nothing sent, connection aborted           │
    │                                                                      │
    │   (file not found)   Not an exception - just a 404 status           │
    │                      └── well-formed 404 response                   │
    │                                                                      │
    │   FileReadError      File vanished/unreadable after the check       │
    │                      ├── before headers: 404 response               │
    │                      └── after headers:  connection aborted         │
    │                                                                      │
    │   WriteError         Output failed after headers started            │
    │                      └── connection aborted                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Headers are an irrevocable commitment: once "200 OK" is on the wire, the
only honest thing left to do with a failure is to drop the connection.

None of these errors ever leave the worker that raised them.
=============================================================================
"""


class WorkerError(Exception):
    """Base class for failures handled inside a single ConnectionWorker."""


class RequestReadError(WorkerError):
    """
    Raised when the request cannot be read up to its terminating blank line.

    Covers EOF, socket timeouts and socket errors. No response is sent.
    """


class FileReadError(WorkerError):
    """
    Raised when a file that passed the existence check cannot be read.

    Carries the path so the log line says which file broke.
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class WriteError(WorkerError):
    """Raised when writing to the client fails."""

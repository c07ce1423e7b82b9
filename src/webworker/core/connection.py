"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps an accepted client socket with the file-like API a ConnectionWorker
reads and writes through.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

    Client sends:
        send("GET /index.html HTTP/1.1\r\nHost: x\r\n\r\n")

    Server might receive:
        recv() → "GET /ind"
        recv() → "ex.html HTTP/1.1\r\nHost: x\r\n\r\n"

Instead of gluing recv() chunks together by hand, we wrap the socket in
buffered file objects (socket.makefile). rfile.readline() then blocks
until a whole line is available, which is exactly what a line-oriented
request parser wants.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      Connection                                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   socket ──makefile("rb")──► rfile   (RequestParser reads lines)    │
    │          ──makefile("wb")──► wfile   (header writer + streamer)     │
    │                                                                      │
    │   settimeout(timeout)  → every read/write has a deadline            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ONE REQUEST, THEN CLOSE
=============================================================================

There is no keep-alive: each connection carries exactly one request and
one response, and the worker closes it afterward. The close sequence:

    1. flush wfile              (push out anything still buffered)
    2. shutdown(SHUT_WR)        (send FIN - "no more data from us")
    3. drain unread input       (so close() doesn't turn into a RST)
    4. close()                  (release the file descriptor)

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple (or "" for socketpairs).
        id: Short unique id used to prefix log lines.
        timeout: Per-operation deadline in seconds (None = block forever).
        created_at: Timestamp when the connection was accepted.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    timeout: Optional[float] = 30.0
    created_at: float = field(default_factory=time.time)

    # Internal state (not shown in repr for cleaner logs)
    _rfile: Optional[BinaryIO] = field(default=None, repr=False)
    _wfile: Optional[BinaryIO] = field(default=None, repr=False)
    _closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        """Put the socket in blocking mode with our deadline."""
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def peer(self) -> str:
        """Client address as "ip:port" for logs."""
        if isinstance(self.address, tuple) and len(self.address) >= 2:
            return f"{self.address[0]}:{self.address[1]}"
        return str(self.address) or "local"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def rfile(self) -> BinaryIO:
        """Buffered binary reader over the socket (created on first use)."""
        if self._rfile is None:
            self._rfile = self.socket.makefile("rb")
        return self._rfile

    @property
    def wfile(self) -> BinaryIO:
        """Buffered binary writer over the socket (created on first use)."""
        if self._wfile is None:
            self._wfile = self.socket.makefile("wb")
        return self._wfile

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        Errors during close are logged, never raised: by the time we get
        here the response is either complete or already abandoned.
        """
        if self._closed:
            return
        self._closed = True

        if self._wfile is not None:
            try:
                self._wfile.flush()
            except OSError as e:
                logger.debug(f"[{self.id}] Flush on close failed: {e}")

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self._drain()

        for stream in (self._rfile, self._wfile):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        """Discard unread input without waiting for more."""
        try:
            self.socket.setblocking(False)
            while self.socket.recv(4096):
                pass
        except OSError:
            # BlockingIOError (nothing left) is an OSError too
            pass

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions

"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Reads the request section of an HTTP message from a blocking byte stream
and extracts the one thing a static responder needs: the requested path.

=============================================================================
WHAT WE READ
=============================================================================

    GET /index.html HTTP/1.1\r\n      ← request line: path = "/index.html"
    Host: localhost:8080\r\n          ← read and discarded
    User-Agent: curl/8.0\r\n          ← read and discarded
    \r\n                              ← empty line: stop here

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST LINE FORMAT                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET SP <path> SP <rest>                                           │
    │       └───┬──┘                                                      │
    │           └── first run of non-space characters after "GET "       │
    │                                                                      │
    │   The path is OPAQUE: no URL decoding, no query-string stripping.   │
    │   "/a.html?x=1" is requested as-is.                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BLOCKING READS, NOT POLLING
=============================================================================

readline() on a socket file blocks until a full line (or EOF) arrives.
The socket's own timeout is the deadline: if the client stalls, readline()
raises socket.timeout (a subclass of OSError) and we give up.

    Client stalls      → timeout  → RequestReadError
    Client hangs up    → EOF (b"") → RequestReadError
    Blank line arrives → done      → IncomingRequest

If no GET line shows up before the blank line, the path is "" which
resolves to the document root itself (a directory, so a 404 follows).

=============================================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import BinaryIO, Optional

from ..errors import RequestReadError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingRequest:
    """
    The parsed request for one connection.

    Attributes:
        path: Requested path exactly as the client sent it ("" if none).
        method: Always "GET".
        request_line: The raw GET line, for logs ("" if none).
    """
    path: str
    method: str = "GET"
    request_line: str = ""


class RequestParser:
    """
    Line-oriented parser for the request section of an HTTP message.

    Usage:
        parser = RequestParser()
        request = parser.parse(conn.rfile)   # blocks until blank line
        request.path                         # "/index.html"
    """

    # Compiled once at class load time.
    # Group 1 is the path: everything after "GET " up to the next space.
    GET_LINE_PATTERN = re.compile(r"^GET ([^ ]+)(?: .*)?$")

    def __init__(self, conn_id: str = "-"):
        """
        Args:
            conn_id: Connection id used to prefix log lines.
        """
        self.conn_id = conn_id

    def parse(self, rfile: BinaryIO) -> IncomingRequest:
        """
        Read lines until the first empty line and return the request.

        Args:
            rfile: Blocking binary stream (e.g. socket.makefile("rb")).

        Returns:
            IncomingRequest with the requested path.

        Raises:
            RequestReadError: If the stream ends or fails before the
                              terminating empty line.
        """
        path: Optional[str] = None
        request_line = ""

        while True:
            line = self._read_line(rfile)

            logger.debug(f"[{self.conn_id}] Request line: ({line})")

            if line == "":
                break

            if path is None:
                match = self.GET_LINE_PATTERN.match(line)
                if match:
                    path = match.group(1)
                    request_line = line
                    logger.debug(f"[{self.conn_id}] Path collected: {path}")

        return IncomingRequest(path=path or "", request_line=request_line)

    def _read_line(self, rfile: BinaryIO) -> str:
        """
        Read one line and strip its terminator.

        HTTP says CRLF, but plenty of hand-typed clients (nc, telnet)
        send bare LF, so both are accepted.
        """
        try:
            raw = rfile.readline()
        except OSError as e:
            raise RequestReadError(f"Request read failed: {e}") from e

        if not raw:
            raise RequestReadError("Connection closed before end of request headers")

        # ISO-8859-1 maps every byte to a code point, so decoding never fails
        return raw.rstrip(b"\r\n").decode("iso-8859-1")


def parse_request(rfile: BinaryIO) -> IncomingRequest:
    """
    Convenience function to parse a request.

    Equivalent to RequestParser().parse(rfile).
    """
    return RequestParser().parse(rfile)

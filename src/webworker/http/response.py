"""
=============================================================================
RESPONSE STATUS AND HEADERS
=============================================================================

The ResponseHeaderWriter is the stage that turns "the client asked for X"
into a committed response: it decides the status ONCE, then writes the
status line and header block.

=============================================================================
FRAMING ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    resolve() then write()                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   resolve()                                                          │
    │     1. Join requested path to document root, normalise             │
    │     2. Reject anything that escapes the root            → 404      │
    │     3. Not a regular file                               → 404      │
    │     4. Open + measure body (streamer.measure)                      │
    │          └── FileReadError (nothing sent yet)           → 404      │
    │     5. Otherwise                                        → 200      │
    │     ==> frozen ResponsePlan: status can no longer change            │
    │                                                                      │
    │   write()                                                            │
    │     HTTP/1.1 200 OK\r\n                                             │
    │     Date: Thu, 15 Jan 2026 12:30:45 GMT\r\n                         │
    │     Server: WebWorker/1.0\r\n                                       │
    │     Connection: close\r\n                                           │
    │     Content-Type: text/html\r\n                                     │
    │     Content-Length: 1234\r\n                                        │
    │     \r\n                               ← exactly one blank line     │
    │     (flush)                                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY CONTENT-LENGTH NEEDS A MEASURING PASS
=============================================================================

Without chunked encoding, Content-Length must be known before the first
body byte. For a binary file that is simply its size on disk. For a text
file it is the size AFTER tag substitution, which only the streamer can
compute, so resolve() asks it to render the file once and count.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    (root / "../../etc/passwd").resolve()  →  /etc/passwd
    /etc/passwd.relative_to(root)          →  ValueError  →  404

resolve() also follows symlinks, so a link inside the root that points
outside it is rejected the same way.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional

from ..errors import FileReadError, WriteError
from .mime_types import DEFAULT_MIME_TYPE, ContentDescriptor
from .request import IncomingRequest
from .status_codes import HTTPStatus
from .template import TemplateContext, format_http_date

if TYPE_CHECKING:
    from .streamer import ContentStreamer


logger = logging.getLogger(__name__)


HTTP_VERSION = "HTTP/1.1"

# Body of every 404 response. Fixed, so its length is known up front.
NOT_FOUND_BODY = (
    b'<body bgcolor="#666FFF">'
    b"<h1><b>404: Not Found</b></h1>"
    b"The page you are looking for does not exist!"
)

# The 404 body is HTML whatever the requested extension was
NOT_FOUND_DESCRIPTOR = ContentDescriptor(mime_type=DEFAULT_MIME_TYPE, is_binary=False)


@dataclass(frozen=True)
class ResponsePlan:
    """
    Everything decided about a response before the first byte is sent.

    Frozen: once built, the status is fixed for the rest of the request.

    Attributes:
        status: 200 or 404.
        descriptor: Content type and binary flag of the body.
        content_length: Exact number of body bytes that will follow.
        file_path: Resolved file to stream (None for 404).
    """
    status: HTTPStatus
    descriptor: ContentDescriptor
    content_length: int
    file_path: Optional[Path] = None

    @property
    def is_ok(self) -> bool:
        return self.status == HTTPStatus.OK

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {self.status.value} {self.status.phrase}"


def not_found_plan() -> ResponsePlan:
    """Plan for the fixed 404 response."""
    return ResponsePlan(
        status=HTTPStatus.NOT_FOUND,
        descriptor=NOT_FOUND_DESCRIPTOR,
        content_length=len(NOT_FOUND_BODY),
    )


def resolve_path(document_root: Path, requested: str) -> Optional[Path]:
    """
    Map a requested path to a filesystem path inside the document root.

    Args:
        document_root: Absolute, already-resolved root directory.
        requested: Path from the request line ("" for none).

    Returns:
        The normalised path, or None if it would escape the root.
    """
    relative = requested.lstrip("/")

    try:
        candidate = (document_root / relative).resolve()
    except (OSError, ValueError) as e:
        # ValueError: embedded NUL byte; OSError: symlink loop etc.
        logger.warning(f"Unresolvable path {requested!r}: {e}")
        return None

    try:
        candidate.relative_to(document_root)
    except ValueError:
        logger.warning(f"Path traversal attempt: {requested!r}")
        return None

    return candidate


class ResponseHeaderWriter:
    """
    Decides the response status and writes the header block.

    Usage:
        writer = ResponseHeaderWriter(root, streamer)
        plan = writer.resolve(request, descriptor, context)
        writer.write(wfile, plan, context)
    """

    def __init__(self, document_root: Path, streamer: "ContentStreamer", conn_id: str = "-"):
        """
        Args:
            document_root: Absolute, already-resolved root directory.
            streamer: Streamer used to open and measure the body.
            conn_id: Connection id used to prefix log lines.
        """
        self.document_root = document_root
        self.streamer = streamer
        self.conn_id = conn_id

    def resolve(
        self,
        request: IncomingRequest,
        descriptor: ContentDescriptor,
        context: TemplateContext,
    ) -> ResponsePlan:
        """
        Decide the status for a request. The only place that does so.

        Args:
            request: Parsed request.
            descriptor: Content type of the requested path.
            context: Template values (needed to measure text bodies).

        Returns:
            Frozen ResponsePlan.
        """
        file_path = resolve_path(self.document_root, request.path)

        if file_path is None or not file_path.is_file():
            logger.info(f"[{self.conn_id}] File {request.path!r} does not exist, sending 404")
            return not_found_plan()

        try:
            content_length = self.streamer.measure(file_path, descriptor, context)
        except FileReadError as e:
            # Nothing has been written yet, so an honest 404 is still possible
            logger.warning(f"[{self.conn_id}] Cannot read {e.path}: {e}, sending 404")
            return not_found_plan()

        return ResponsePlan(
            status=HTTPStatus.OK,
            descriptor=descriptor,
            content_length=content_length,
            file_path=file_path,
        )

    def build(self, plan: ResponsePlan, context: TemplateContext) -> bytes:
        """Serialize the status line and header block."""
        lines = [
            plan.status_line,
            f"Date: {context.formatted_date}",
            f"Server: {context.server_identity}",
            "Connection: close",
            f"Content-Type: {plan.descriptor.mime_type}",
            f"Content-Length: {plan.content_length}",
            "",   # Blank line ends the header block
            "",
        ]
        return "\r\n".join(lines).encode("utf-8")

    def write(self, wfile: BinaryIO, plan: ResponsePlan, context: TemplateContext) -> None:
        """
        Write and flush the header block.

        Raises:
            WriteError: If the client connection fails.
        """
        try:
            wfile.write(self.build(plan, context))
            wfile.flush()
        except OSError as e:
            raise WriteError(f"Failed to write response header: {e}") from e


__all__ = [
    "HTTP_VERSION",
    "NOT_FOUND_BODY",
    "ResponsePlan",
    "ResponseHeaderWriter",
    "format_http_date",
    "not_found_plan",
    "resolve_path",
]

"""
=============================================================================
CONTENT STREAMING
=============================================================================

Writes the response body, consistent with the headers already sent.

=============================================================================
THREE BODY PATHS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ContentStreamer.stream()                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   404          Fixed HTML fragment. No file is opened.              │
    │                                                                      │
    │   200 text     for each line in file:                               │
    │                    strip line terminator                            │
    │                    replace tags (TemplateContext.render_line)       │
    │                    write line + "\n"                                │
    │                                                                      │
    │   200 binary   while chunk := file.read(buffer_size):               │
    │                    write chunk        (bytes verbatim, in order)    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Text files are read as BYTES and split on b"\n". Tags are ASCII, so
substitution works on any encoding that is ASCII-compatible (UTF-8,
Latin-1, ...) without ever decoding the file.

=============================================================================
MEASURE, THEN STREAM
=============================================================================

The header writer needs Content-Length before the first body byte, so the
streamer exposes measure() which runs the same rendering without writing.
Both passes share _iter_text_lines(), which guarantees that the announced
length and the bytes written come from identical code.

If the file changes between the two passes (or disappears, or a read
fails) the byte count will not match what was promised. At that point
"200 OK" is already on the wire, so the only thing left to do is raise
FileReadError and let the worker drop the connection.

=============================================================================
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterator

from ..errors import FileReadError, WriteError
from .mime_types import ContentDescriptor
from .response import NOT_FOUND_BODY, ResponsePlan
from .template import TemplateContext


logger = logging.getLogger(__name__)


def _strip_line_ending(line: bytes) -> bytes:
    if line.endswith(b"\r\n"):
        return line[:-2]
    if line.endswith(b"\n"):
        return line[:-1]
    return line


class ContentStreamer:
    """
    Produces response bodies for a single connection.

    Usage:
        streamer = ContentStreamer(buffer_size=8192)
        length = streamer.measure(path, descriptor, context)
        ...headers written...
        streamer.stream(wfile, plan, context)
    """

    def __init__(self, buffer_size: int = 8192, conn_id: str = "-"):
        """
        Args:
            buffer_size: Chunk size for binary relay.
            conn_id: Connection id used to prefix log lines.
        """
        self.buffer_size = buffer_size
        self.conn_id = conn_id

    # =========================================================================
    # MEASURING (before headers)
    # =========================================================================

    def measure(self, path: Path, descriptor: ContentDescriptor, context: TemplateContext) -> int:
        """
        Number of body bytes stream() will write for this file.

        Binary: the file's size on disk (fstat of the opened file).
        Text: the total length after tag substitution.

        Raises:
            FileReadError: If the file cannot be opened or read.
        """
        try:
            with open(path, "rb") as fh:
                if descriptor.is_binary:
                    return os.fstat(fh.fileno()).st_size
                return sum(len(line) for line in self._iter_text_lines(fh, context))
        except OSError as e:
            raise FileReadError(f"Cannot read file: {e}", path=str(path)) from e

    # =========================================================================
    # STREAMING (after headers)
    # =========================================================================

    def stream(self, wfile: BinaryIO, plan: ResponsePlan, context: TemplateContext) -> int:
        """
        Write the body for a plan, then flush.

        Args:
            wfile: Client output stream (headers already written).
            plan: The committed response plan.
            context: Template values for text bodies.

        Returns:
            Number of body bytes written.

        Raises:
            FileReadError: File unreadable or changed size mid-stream.
            WriteError: Client connection failed.
        """
        if not plan.is_ok:
            sent = self._write(wfile, NOT_FOUND_BODY)
        elif plan.descriptor.is_binary:
            sent = self._stream_binary(wfile, plan)
        else:
            sent = self._stream_text(wfile, plan, context)

        try:
            wfile.flush()
        except OSError as e:
            raise WriteError(f"Failed to flush response body: {e}") from e

        return sent

    def _stream_text(self, wfile: BinaryIO, plan: ResponsePlan, context: TemplateContext) -> int:
        sent = 0
        try:
            with open(plan.file_path, "rb") as fh:
                for line in self._iter_text_lines(fh, context):
                    # Never send more than Content-Length, even if the file grew
                    if sent + len(line) > plan.content_length:
                        raise FileReadError(
                            f"File grew while streaming: promised {plan.content_length} bytes",
                            path=str(plan.file_path),
                        )
                    sent += self._write(wfile, line)
        except OSError as e:
            # WriteError is not an OSError, so only file failures land here
            raise FileReadError(f"Text file read failed mid-stream: {e}", path=str(plan.file_path)) from e

        self._check_length(sent, plan)
        return sent

    def _stream_binary(self, wfile: BinaryIO, plan: ResponsePlan) -> int:
        sent = 0
        try:
            with open(plan.file_path, "rb") as fh:
                # Never send more than Content-Length, even if the file grew
                while sent < plan.content_length:
                    chunk = fh.read(min(self.buffer_size, plan.content_length - sent))
                    if not chunk:
                        break
                    sent += self._write(wfile, chunk)
        except OSError as e:
            raise FileReadError(f"Binary file read failed mid-stream: {e}", path=str(plan.file_path)) from e

        self._check_length(sent, plan)
        return sent

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _iter_text_lines(fh: BinaryIO, context: TemplateContext) -> Iterator[bytes]:
        """Rendered lines of a text file, each ending in a single b"\\n"."""
        for raw in fh:
            yield context.render_line(_strip_line_ending(raw)) + b"\n"

    def _write(self, wfile: BinaryIO, data: bytes) -> int:
        try:
            wfile.write(data)
        except OSError as e:
            raise WriteError(f"Failed to write response body: {e}") from e
        return len(data)

    def _check_length(self, sent: int, plan: ResponsePlan) -> None:
        if sent != plan.content_length:
            raise FileReadError(
                f"File changed while streaming: sent {sent} bytes, "
                f"promised {plan.content_length}",
                path=str(plan.file_path),
            )
        logger.debug(f"[{self.conn_id}] Streamed {sent} bytes from {plan.file_path}")

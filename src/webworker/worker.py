"""
=============================================================================
CONNECTION WORKER
=============================================================================

One ConnectionWorker handles exactly one client connection: it reads one
GET request, sends one response, and closes the connection. Then it is
thrown away.

=============================================================================
PER-CONNECTION STATE MACHINE
=============================================================================

    IDLE ──► READING_REQUEST ──► RESOLVING_CONTENT ──► WRITING_HEADER ──┐
     │              │                    │                    │          │
     │              │                    │                    │          ▼
     │              │                    │                    │   STREAMING_BODY
     │              │                    │                    │          │
     │              ▼                    ▼                    ▼          ▼
     └────────────────────────────────► CLOSED ◄─────────────────────────┘

Any error in any state goes straight to CLOSED. There is no retry and no
going back to an earlier state.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   STATE               STAGE                     ERROR → OUTCOME      │
    ├─────────────────────────────────────────────────────────────────────┤
    │   READING_REQUEST     RequestParser             RequestReadError     │
    │                                                 → abort, no bytes    │
    │   RESOLVING_CONTENT   resolve_content_type +    (not found → 404,    │
    │                       ResponseHeaderWriter      handled in stage)    │
    │                       .resolve                                        │
    │   WRITING_HEADER      ResponseHeaderWriter      WriteError → abort   │
    │                       .write                                          │
    │   STREAMING_BODY      ContentStreamer.stream    FileReadError /      │
    │                                                 WriteError → abort   │
    └─────────────────────────────────────────────────────────────────────┘

The connection is closed exactly once, in a finally block, whichever path
was taken.

=============================================================================
NOTHING IS SHARED
=============================================================================

Every per-request value (path, status, content type, timestamp) lives in
local records created inside run(). Two workers running at the same time
have nothing in common except read-only access to the document root.

=============================================================================
"""

import logging
from enum import Enum
from typing import Optional

from .config import ServerConfig
from .core.connection import Connection
from .errors import FileReadError, RequestReadError, WorkerError, WriteError
from .http.mime_types import resolve_content_type
from .http.request import RequestParser
from .http.response import ResponseHeaderWriter, ResponsePlan
from .http.streamer import ContentStreamer
from .http.template import TemplateContext


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle of one ConnectionWorker."""
    IDLE = "idle"
    READING_REQUEST = "reading_request"
    RESOLVING_CONTENT = "resolving_content"
    WRITING_HEADER = "writing_header"
    STREAMING_BODY = "streaming_body"
    CLOSED = "closed"


class ConnectionWorker:
    """
    Protocol handler for a single connection.

    Usage:
        worker = ConnectionWorker(conn, config)
        plan = worker.run()     # None if the connection was aborted

    A worker is single-use: run() may only be called once.
    """

    def __init__(self, connection: Connection, config: ServerConfig):
        """
        Args:
            connection: The accepted connection. The worker owns it from
                        now on and always closes it.
            config: Server configuration (document root, tags, sizes).
        """
        self.connection = connection
        self.config = config
        self.state = ConnectionState.IDLE

    @property
    def conn_id(self) -> str:
        return self.connection.id

    def run(self) -> Optional[ResponsePlan]:
        """
        Handle the connection from first byte to close.

        Never raises for per-connection failures: they are logged and the
        connection is closed. Raises RuntimeError if called twice.

        Returns:
            The response plan that was sent, or None if the connection
            was aborted before a complete response went out.
        """
        if self.state != ConnectionState.IDLE:
            raise RuntimeError("ConnectionWorker is single-use")

        logger.info(f"[{self.conn_id}] Handling connection from {self.connection.peer}...")
        plan: Optional[ResponsePlan] = None

        try:
            plan = self._serve()
        except RequestReadError as e:
            logger.warning(f"[{self.conn_id}] Request error: {e}")
        except FileReadError as e:
            logger.error(f"[{self.conn_id}] File error after headers sent ({e.path}): {e}")
        except WriteError as e:
            logger.error(f"[{self.conn_id}] Output error: {e}")
        except WorkerError as e:
            logger.error(f"[{self.conn_id}] Connection aborted: {e}")
        except OSError as e:
            logger.error(f"[{self.conn_id}] I/O error in state {self.state.value}: {e}")
        finally:
            self.state = ConnectionState.CLOSED
            self.connection.close()

        logger.info(f"[{self.conn_id}] Done handling connection.")
        return plan

    def _serve(self) -> ResponsePlan:
        """Run the four stages in order. Any exception aborts."""
        context = TemplateContext.capture(
            server_identity=self.config.server_name,
            date_tag=self.config.date_tag,
            server_tag=self.config.server_tag,
        )
        streamer = ContentStreamer(buffer_size=self.config.buffer_size, conn_id=self.conn_id)
        header_writer = ResponseHeaderWriter(self.config.root_path, streamer, conn_id=self.conn_id)

        # ─────────────────────────────────────────────────────────────────
        # STAGE 1: read the request
        # ─────────────────────────────────────────────────────────────────
        self.state = ConnectionState.READING_REQUEST
        request = RequestParser(conn_id=self.conn_id).parse(self.connection.rfile)

        # ─────────────────────────────────────────────────────────────────
        # STAGE 2 + status: classify, resolve, fix the status
        # ─────────────────────────────────────────────────────────────────
        self.state = ConnectionState.RESOLVING_CONTENT
        descriptor = resolve_content_type(request.path)
        plan = header_writer.resolve(request, descriptor, context)

        # ─────────────────────────────────────────────────────────────────
        # STAGE 3: header block (flushed before any body byte)
        # ─────────────────────────────────────────────────────────────────
        self.state = ConnectionState.WRITING_HEADER
        header_writer.write(self.connection.wfile, plan, context)

        # ─────────────────────────────────────────────────────────────────
        # STAGE 4: body
        # ─────────────────────────────────────────────────────────────────
        self.state = ConnectionState.STREAMING_BODY
        sent = streamer.stream(self.connection.wfile, plan, context)

        logger.info(
            f"[{self.conn_id}] GET {request.path or '/'} -> "
            f"{plan.status.value} {plan.descriptor.mime_type} ({sent} bytes)"
        )
        return plan

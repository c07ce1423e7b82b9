"""
=============================================================================
WEB SERVER
=============================================================================

Ties the pieces together: the acceptor hands each connection to the
bounded pool, and the pool runs one ConnectionWorker per connection.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │    WebServer    │                          │
    │                        └────────┬────────┘                          │
    │                 ┌───────────────┴───────────────┐                   │
    │                 ▼                               ▼                   │
    │        ┌──────────────┐                ┌──────────────┐             │
    │        │ SocketServer │──Connection──► │  ThreadPool  │             │
    │        │  (accept)    │                │ (admission)  │             │
    │        └──────────────┘                └──────┬───────┘             │
    │                                               ▼                     │
    │                                     ┌──────────────────┐            │
    │                                     │ ConnectionWorker │ × N        │
    │                                     │  parse → type →  │            │
    │                                     │  header → body   │            │
    │                                     └──────────────────┘            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
OVERLOAD
=============================================================================

When every worker is busy and the queue is full, the acceptor waits up to
admission_timeout for room. If none frees up, the connection is closed
without a response. The protocol stays the same: a client either gets a
normal response or a closed connection, never a different status.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .worker import ConnectionWorker


logger = logging.getLogger(__name__)


class WebServer:
    """
    Static-file web server.

    Usage:
        server = WebServer(ServerConfig(port=8080, document_root="./public"))
        server.run()        # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

        self._running = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> tuple:
        """Bound (host, port); reflects the real port when port=0."""
        return self._socket_server.address

    @property
    def stats(self) -> dict:
        return self._thread_pool.stats

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Pass False when embedding in an app that already
                           configured logging.
        """
        if setup_logging:
            self._setup_logging()

        self._running = True
        self._thread_pool.start()

        logger.info(
            f"Serving {self.config.root_path} on {self.config.host}:{self.config.port} "
            f"as {self.config.server_name!r}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the server to stop. Returns immediately."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("webworker").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False

        logger.info(f"Pool stats at shutdown: {self._thread_pool.stats}")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Queue a connection for a ConnectionWorker (runs on accept thread).

        A fresh worker per connection: workers are never reused.
        """
        worker = ConnectionWorker(conn, self.config)

        try:
            submitted = self._thread_pool.submit(
                worker.run,
                queue_timeout=self.config.admission_timeout,
                on_discard=conn.close,
            )
        except RuntimeError as e:
            # Pool already shutting down
            logger.warning(f"[{conn.id}] Cannot schedule connection: {e}")
            submitted = False

        if not submitted:
            logger.warning(f"[{conn.id}] Server at capacity, dropping connection from {conn.peer}")
            conn.close()


def create_server(config: Optional[ServerConfig] = None) -> WebServer:
    """Factory for WebServer instances."""
    return WebServer(config)

"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The connection acceptor: binds a TCP port, accepts connections, and hands
each one (wrapped in a Connection) to a callback. It knows nothing about
HTTP; that lives in the ConnectionWorker.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Associate it with host:port (port 0 = OS picks)
    3. listen()    Start queueing incoming connections (backlog)
    4. accept()    Take one connection off the queue → new client socket
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘     Never sends/receives data
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Connection│         │ Connection│         │ Connection│
    └───────────┘         └───────────┘         └───────────┘
    Each accept() creates a new socket for that specific client

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:  restart immediately instead of "Address already in use"
               while the old socket sits in TIME_WAIT.

TCP_NODELAY:   disable Nagle's algorithm so the header block goes out
               without waiting to be coalesced with body bytes.

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd) trigger shutdown().
Python only allows installing signal handlers from the main thread, so
when the server runs in a background thread (tests, embedding) the
handlers are skipped and the owner calls shutdown() directly.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

        __init__()        Store config, initialize state
        start(callback)   Create, bind, listen, then accept loop (blocks)
        shutdown()        Stop the accept loop (from any thread / signal)

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeout).

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None

        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        # Save original signal handlers so we can restore them
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound.

        Differs from the config when port 0 was requested.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up once a second to check the running flag
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called once per accepted Connection. It
                                must not block for long: the accept loop
                                waits for it to return.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        logger.info(f"Server listening on {self.address[0]}:{self.address[1]}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: lets us re-check self._running once a second
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )
            logger.debug(f"[{conn.id}] Accepted connection from {conn.peer}")

            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting connections.

        Safe to call from a signal handler, another thread, or repeatedly.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. True if it is."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the server has stopped. True if it has."""
        return self._shutdown_event.wait(timeout)

"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the web worker server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m webworker --port 3000 --root ./public           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── WEBWORKER_PORT=3000 python -m webworker                   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The CLI starts from ServerConfig.from_env() and overrides whatever flags
were given, so both layers compose.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the web worker server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    ADMISSION CONTROL
    - min_workers, max_workers, queue_size, admission_timeout

    CONTENT
    - document_root, server_name, date_tag, server_tag

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (containers)
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections in the kernel accept queue.
    """

    buffer_size: int = 8192
    """
    Chunk size for socket reads and binary file relay (8 KB default).
    """

    timeout: Optional[float] = 30.0
    """
    Per-operation socket deadline in seconds.
    Bounds every blocking read and write a worker performs, so a stalled
    client cannot pin a worker thread forever.
    None = block forever (not recommended).
    """

    # ─────────────────────────────────────────────────────────────────────
    # ADMISSION CONTROL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """
    Worker threads created at startup.
    """

    max_workers: int = 16
    """
    Hard cap on concurrently running ConnectionWorkers.
    """

    queue_size: int = 100
    """
    Accepted connections allowed to wait for a free worker.
    """

    admission_timeout: float = 5.0
    """
    How long the acceptor waits for room in the queue before dropping
    a connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "."
    """
    Directory every requested path is resolved under.
    Requests that would escape it are answered with 404.
    """

    server_name: str = "WebWorker/1.0"
    """
    Server identity. Sent in the Server header and substituted for
    the server tag inside text responses.
    """

    date_tag: str = "<cs371date>"
    """
    Template tag replaced with the current HTTP-date in text responses.
    """

    server_tag: str = "<cs371server>"
    """
    Template tag replaced with server_name in text responses.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR).
    DEBUG logs every request line the parser sees.
    """

    @property
    def root_path(self) -> Path:
        """Absolute, symlink-free document root."""
        return Path(self.document_root).resolve()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEBWORKER_HOST         Server host (default: 127.0.0.1)
        WEBWORKER_PORT         Server port (default: 8080)
        WEBWORKER_ROOT         Document root (default: .)
        WEBWORKER_WORKERS      Max worker threads (default: 16)
        WEBWORKER_TIMEOUT      Socket deadline in seconds (default: 30)
        WEBWORKER_LOG_LEVEL    Logging level (default: INFO)
        WEBWORKER_SERVER_NAME  Server identity (default: WebWorker/1.0)

        =====================================================================
        """
        max_workers = int(os.getenv("WEBWORKER_WORKERS", "16"))

        return cls(
            host=os.getenv("WEBWORKER_HOST", "127.0.0.1"),
            port=int(os.getenv("WEBWORKER_PORT", "8080")),
            document_root=os.getenv("WEBWORKER_ROOT", "."),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("WEBWORKER_TIMEOUT", "30")),
            log_level=os.getenv("WEBWORKER_LOG_LEVEL", "INFO"),
            server_name=os.getenv("WEBWORKER_SERVER_NAME", "WebWorker/1.0"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at server construction so a bad value fails at
        startup, not on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if not self.root_path.is_dir():
            raise ValueError(f"Document root does not exist: {self.document_root}")

        if not self.date_tag or not self.server_tag:
            raise ValueError("Template tags must be non-empty")

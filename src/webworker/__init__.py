"""
=============================================================================
WEBWORKER - Templated Static-File HTTP Responder
=============================================================================

A small HTTP/1.1 server built on raw sockets. Each accepted connection
gets its own ConnectionWorker, which answers exactly one GET request with
a file from the document root and then closes the connection.

=============================================================================
WHAT A WORKER DOES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GET /index.html HTTP/1.1          ──►  HTTP/1.1 200 OK            │
    │   Host: localhost                        Date: ...                  │
    │                                          Server: WebWorker/1.0      │
    │                                          Connection: close          │
    │                                          Content-Type: text/html    │
    │                                          Content-Length: 512        │
    │                                                                      │
    │                                          <html>... with <cs371date> │
    │                                          and <cs371server> replaced │
    │                                                                      │
    │   GET /logo.png HTTP/1.1            ──►  image/png, bytes verbatim  │
    │   GET /missing.html HTTP/1.1        ──►  404 Not Found              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    webworker/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m webworker)
    ├── server.py            # WebServer: acceptor + pool + workers
    ├── worker.py            # ConnectionWorker: one request per connection
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Worker error taxonomy
    ├── core/                # Networking
    │   ├── socket_server.py # TCP accept loop
    │   ├── connection.py    # Socket wrapper (rfile/wfile/deadline)
    │   └── thread_pool.py   # Bounded worker pool
    └── http/                # Protocol stages
        ├── request.py       # RequestParser
        ├── mime_types.py    # ContentTypeResolver
        ├── response.py      # ResponseHeaderWriter
        ├── streamer.py      # ContentStreamer
        ├── template.py      # Tag substitution + HTTP-date
        └── status_codes.py  # 200 / 404

=============================================================================
QUICK START
=============================================================================

    from webworker import WebServer, ServerConfig

    server = WebServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

or from the shell:

    python -m webworker --root ./public --port 8080

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import WebServer, create_server
from .worker import ConnectionWorker, ConnectionState

__all__ = [
    "ConnectionState",
    "ConnectionWorker",
    "ServerConfig",
    "WebServer",
    "create_server",
    "__version__",
]

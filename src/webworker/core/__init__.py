"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Everything between the listening socket and a ConnectionWorker:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer      accept() loop, one Connection per client        │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection        socket + rfile/wfile + deadline + close()       │
    │        │                                                             │
    │        ▼                                                             │
    │   ThreadPool        bounded workers; runs ConnectionWorker.run()    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection
from .thread_pool import ThreadPool, WorkerState

__all__ = [
    "SocketServer",     # Accepts connections
    "Connection",       # Wrapper for one client socket
    "ThreadPool",       # Bounded workers (admission limit)
    "WorkerState",      # Pool thread states
]

"""
pytest configuration and fixtures.
"""

import socket
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webworker import ServerConfig, WebServer
from webworker.core import Connection
from webworker.http import TemplateContext


INDEX_HTML = (
    b"<html>\r\n"
    b"<p>Served by <cs371server></p>\r\n"
    b"<p>Date: <cs371date></p>\r\n"
    b"</html>\r\n"
)

# Non-text bytes, including bare CR/LF and the tag text, so any line
# handling or substitution on the binary path would show up.
LOGO_PNG = ((b"\x89PNG\r\n\x1a\n" + b"<cs371date>\n\x00\xff" * 50) * 15)[:10000]


@pytest.fixture
def document_root(tmp_path: Path) -> Path:
    """A document root with one template page and one image."""
    (tmp_path / "index.html").write_bytes(INDEX_HTML)
    (tmp_path / "logo.png").write_bytes(LOGO_PNG)
    (tmp_path / "notes.txt").write_bytes(b"plain line\nno newline at end")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "page.html").write_bytes(b"<h1><cs371server></h1>\n")
    return tmp_path


@pytest.fixture
def config(document_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        queue_size=8,
        timeout=5.0,
        document_root=str(document_root),
        server_name="TestServer/0.1",
        log_level="WARNING",
    )


@pytest.fixture
def context() -> TemplateContext:
    """Template context with a fixed timestamp."""
    return TemplateContext(
        timestamp=datetime(2026, 1, 7, 9, 5, 3, tzinfo=timezone.utc),
        server_identity="TestServer/0.1",
    )


class SocketPair:
    """
    A server-side Connection plus the client end of a socketpair.

    Lets a ConnectionWorker run against a real socket without a listener.
    """

    def __init__(self, timeout: float = 5.0):
        server_sock, self.client = socket.socketpair()
        self.client.settimeout(timeout)
        self.connection = Connection(socket=server_sock, address="", timeout=timeout)

    def send(self, data: bytes):
        self.client.sendall(data)

    def receive_all(self) -> bytes:
        """Read until the server closes its end."""
        chunks = []
        while True:
            chunk = self.client.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def close(self):
        self.connection.close()
        self.client.close()


@pytest.fixture
def socket_pair() -> Generator[SocketPair, None, None]:
    pair = SocketPair()
    yield pair
    pair.close()


@pytest.fixture
def make_socket_pair():
    """Factory for socket pairs with a custom deadline."""
    pairs = []

    def factory(timeout: float = 5.0) -> SocketPair:
        pair = SocketPair(timeout)
        pairs.append(pair)
        return pair

    yield factory

    for pair in pairs:
        pair.close()


def _split_response(raw: bytes):
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


@pytest.fixture
def split_response():
    """Split a raw response into (status line, headers dict, body)."""
    return _split_response


class RunningServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def get(self, raw_request: bytes) -> bytes:
        """Send raw bytes and read the whole response."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            s.sendall(raw_request)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A WebServer bound to an ephemeral port."""
    srv = RunningServer(WebServer(config))
    srv.start()

    yield srv

    srv.stop()

"""
Unit tests for HTTP request parsing.
"""

import io

import pytest

from webworker.errors import RequestReadError
from webworker.http.request import (
    IncomingRequest,
    RequestParser,
    parse_request,
)


class FailingReader:
    """Stream whose readline() fails like a timed-out socket."""

    def __init__(self, lines=()):
        self._lines = list(lines)

    def readline(self):
        if self._lines:
            return self._lines.pop(0)
        raise TimeoutError("timed out")


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request."""
        raw = b"GET /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = RequestParser().parse(io.BytesIO(raw))

        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.request_line == "GET /index.html HTTP/1.1"

    def test_parse_bare_lf_lines(self):
        """Test that LF-only clients (nc, telnet) are accepted."""
        raw = b"GET /a.html HTTP/1.1\nHost: x\n\n"
        request = parse_request(io.BytesIO(raw))

        assert request.path == "/a.html"

    def test_get_without_version(self):
        """Test a request line with only a method and a path."""
        request = parse_request(io.BytesIO(b"GET /only-path\r\n\r\n"))
        assert request.path == "/only-path"

    def test_first_get_line_wins(self):
        """Test that only the first GET line sets the path."""
        raw = (
            b"GET /first.html HTTP/1.1\r\n"
            b"GET /second.html HTTP/1.1\r\n"
            b"\r\n"
        )
        request = parse_request(io.BytesIO(raw))

        assert request.path == "/first.html"

    def test_get_line_after_headers(self):
        """Test that a GET line anywhere before the blank line is found."""
        raw = b"Host: localhost\r\nGET /late.html HTTP/1.1\r\n\r\n"
        assert parse_request(io.BytesIO(raw)).path == "/late.html"

    def test_no_get_line_gives_empty_path(self):
        """Test that a request without GET yields the empty path."""
        raw = b"POST /form HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parse_request(io.BytesIO(raw))

        assert request.path == ""
        assert request.request_line == ""

    def test_lowercase_method_not_recognised(self):
        request = parse_request(io.BytesIO(b"get /x.html HTTP/1.1\r\n\r\n"))
        assert request.path == ""

    def test_path_is_opaque(self):
        """Test that the path is kept exactly as sent (no decoding)."""
        raw = b"GET /a%20b.html?x=1 HTTP/1.1\r\n\r\n"
        assert parse_request(io.BytesIO(raw)).path == "/a%20b.html?x=1"

    def test_stops_at_blank_line(self):
        """Test that nothing after the blank line is consumed."""
        stream = io.BytesIO(b"GET / HTTP/1.1\r\n\r\nleftover body")
        parse_request(stream)

        assert stream.read() == b"leftover body"

    def test_non_ascii_bytes_do_not_fail(self):
        """Test that arbitrary header bytes are tolerated."""
        raw = b"GET /caf\xe9.html HTTP/1.1\r\nX-Bin: \xff\xfe\r\n\r\n"
        request = parse_request(io.BytesIO(raw))

        assert request.path == "/caf\xe9.html"


class TestRequestReadErrors:
    """Truncated or failing request streams."""

    def test_eof_before_blank_line(self):
        """Test that EOF before the terminating blank line aborts."""
        with pytest.raises(RequestReadError):
            parse_request(io.BytesIO(b"GET /index.html HTTP/1.1\r\nHost: x\r\n"))

    def test_empty_stream(self):
        with pytest.raises(RequestReadError):
            parse_request(io.BytesIO(b""))

    def test_read_timeout(self):
        """Test that a socket timeout becomes RequestReadError."""
        reader = FailingReader([b"GET / HTTP/1.1\r\n"])

        with pytest.raises(RequestReadError) as exc_info:
            RequestParser(conn_id="abc").parse(reader)

        assert isinstance(exc_info.value.__cause__, TimeoutError)


class TestIncomingRequest:
    """Tests for IncomingRequest dataclass."""

    def test_defaults(self):
        request = IncomingRequest(path="/x")

        assert request.method == "GET"
        assert request.request_line == ""

    def test_frozen(self):
        """Test that a parsed request cannot be modified."""
        request = IncomingRequest(path="/x")

        with pytest.raises(AttributeError):
            request.path = "/y"

"""
Unit tests for ContentStreamer (body measuring and streaming).
"""

import io
from pathlib import Path

import pytest

from webworker.errors import FileReadError, WriteError
from webworker.http import (
    ContentStreamer,
    HTTPStatus,
    NOT_FOUND_BODY,
    ResponsePlan,
    not_found_plan,
    resolve_content_type,
)


class CountingWriter(io.BytesIO):
    """BytesIO that records the size of every write."""

    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, data):
        self.writes.append(len(data))
        return super().write(data)


class BrokenWriter:

    def write(self, data):
        raise ConnectionResetError("reset by peer")

    def flush(self):
        pass


def ok_plan(streamer, path: Path, context) -> ResponsePlan:
    descriptor = resolve_content_type(str(path))
    return ResponsePlan(
        status=HTTPStatus.OK,
        descriptor=descriptor,
        content_length=streamer.measure(path, descriptor, context),
        file_path=path,
    )


class TestTextStreaming:
    """Text files: line by line with tag substitution."""

    def test_tags_replaced_and_lines_normalised(self, document_root, context):
        """Test CRLF input comes out as LF with both tags replaced."""
        streamer = ContentStreamer()
        plan = ok_plan(streamer, document_root / "index.html", context)
        out = io.BytesIO()

        sent = streamer.stream(out, plan, context)

        assert out.getvalue() == (
            b"<html>\n"
            b"<p>Served by TestServer/0.1</p>\n"
            b"<p>Date: Wed, 07 Jan 2026 09:05:03 GMT</p>\n"
            b"</html>\n"
        )
        assert sent == plan.content_length == len(out.getvalue())

    def test_final_line_gets_terminator(self, document_root, context):
        """Test that a file without a trailing newline still ends in one."""
        streamer = ContentStreamer()
        plan = ok_plan(streamer, document_root / "notes.txt", context)
        out = io.BytesIO()

        streamer.stream(out, plan, context)

        assert out.getvalue() == b"plain line\nno newline at end\n"

    def test_empty_file(self, tmp_path, context):
        empty = tmp_path / "empty.html"
        empty.write_bytes(b"")
        streamer = ContentStreamer()
        plan = ok_plan(streamer, empty, context)
        out = io.BytesIO()

        assert plan.content_length == 0
        assert streamer.stream(out, plan, context) == 0
        assert out.getvalue() == b""

    def test_file_changed_after_measure(self, tmp_path, context):
        """Test that a size mismatch aborts instead of breaking framing."""
        page = tmp_path / "page.html"
        page.write_bytes(b"short\n")
        streamer = ContentStreamer()
        plan = ok_plan(streamer, page, context)

        page.write_bytes(b"much longer than before\n")
        out = io.BytesIO()

        with pytest.raises(FileReadError) as exc_info:
            streamer.stream(out, plan, context)

        assert exc_info.value.path == str(page)
        assert len(out.getvalue()) <= plan.content_length

    def test_file_grew_by_extra_lines(self, tmp_path, context):
        """Test that lines beyond the promised length are never written."""
        page = tmp_path / "page.html"
        page.write_bytes(b"first\nsecond\n")
        streamer = ContentStreamer()
        plan = ok_plan(streamer, page, context)

        page.write_bytes(b"first\nsecond\nthird\n")
        out = io.BytesIO()

        with pytest.raises(FileReadError):
            streamer.stream(out, plan, context)

        assert out.getvalue() == b"first\nsecond\n"


class TestBinaryStreaming:
    """Binary files: relayed verbatim in buffer-sized chunks."""

    def test_bytes_verbatim(self, document_root, context):
        """Test that binary content is not touched (no tag substitution)."""
        streamer = ContentStreamer()
        plan = ok_plan(streamer, document_root / "logo.png", context)
        out = io.BytesIO()

        sent = streamer.stream(out, plan, context)

        assert out.getvalue() == (document_root / "logo.png").read_bytes()
        assert sent == plan.content_length == 10000

    def test_chunked_by_buffer_size(self, document_root, context):
        streamer = ContentStreamer(buffer_size=4096)
        plan = ok_plan(streamer, document_root / "logo.png", context)
        out = CountingWriter()

        streamer.stream(out, plan, context)

        assert out.writes == [4096, 4096, 1808]

    def test_file_grew_after_measure(self, tmp_path, context):
        """Test that no more than Content-Length bytes are sent."""
        image = tmp_path / "grow.gif"
        image.write_bytes(b"GIF89a" + b"\x00" * 94)
        streamer = ContentStreamer()
        plan = ok_plan(streamer, image, context)

        image.write_bytes(b"GIF89a" + b"\x01" * 500)
        out = io.BytesIO()
        streamer.stream(out, plan, context)

        assert len(out.getvalue()) == 100

    def test_file_shrank_after_measure(self, tmp_path, context):
        image = tmp_path / "shrink.jpg"
        image.write_bytes(b"\xff\xd8" * 100)
        streamer = ContentStreamer()
        plan = ok_plan(streamer, image, context)

        image.write_bytes(b"\xff\xd8")

        with pytest.raises(FileReadError):
            streamer.stream(io.BytesIO(), plan, context)


class TestNotFoundAndErrors:

    def test_not_found_body(self, context):
        out = io.BytesIO()
        sent = ContentStreamer().stream(out, not_found_plan(), context)

        assert out.getvalue() == NOT_FOUND_BODY
        assert b"404: Not Found" in NOT_FOUND_BODY
        assert sent == len(NOT_FOUND_BODY)

    def test_measure_missing_file(self, tmp_path, context):
        """Test that measuring an unreadable file raises FileReadError."""
        missing = tmp_path / "gone.html"

        with pytest.raises(FileReadError):
            ContentStreamer().measure(missing, resolve_content_type("/gone.html"), context)

    def test_file_deleted_after_measure(self, tmp_path, context):
        page = tmp_path / "page.html"
        page.write_bytes(b"hello\n")
        streamer = ContentStreamer()
        plan = ok_plan(streamer, page, context)

        page.unlink()

        with pytest.raises(FileReadError):
            streamer.stream(io.BytesIO(), plan, context)

    def test_write_failure(self, document_root, context):
        """Test that a client failure raises WriteError, not FileReadError."""
        streamer = ContentStreamer()
        plan = ok_plan(streamer, document_root / "index.html", context)

        with pytest.raises(WriteError):
            streamer.stream(BrokenWriter(), plan, context)

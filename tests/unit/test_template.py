"""
Unit tests for template substitution and HTTP-date formatting.
"""

from datetime import datetime, timedelta, timezone

import pytest

from webworker.http.template import TemplateContext, format_http_date


class TestFormatHttpDate:
    """Tests for format_http_date()."""

    def test_imf_fixdate(self):
        """Test the RFC 7231 format."""
        dt = datetime(2026, 1, 7, 9, 5, 3)
        assert format_http_date(dt) == "Wed, 07 Jan 2026 09:05:03 GMT"

    def test_aware_datetime_converted_to_utc(self):
        """Test that a non-UTC aware datetime is shifted to GMT."""
        plus_two = timezone(timedelta(hours=2))
        dt = datetime(2026, 3, 1, 1, 30, 0, tzinfo=plus_two)

        assert format_http_date(dt) == "Sat, 28 Feb 2026 23:30:00 GMT"


class TestTemplateContext:
    """Tests for TemplateContext.render_line()."""

    def test_replaces_both_tags(self, context: TemplateContext):
        line = b"<p><cs371server> at <cs371date></p>"

        assert context.render_line(line) == (
            b"<p>TestServer/0.1 at Wed, 07 Jan 2026 09:05:03 GMT</p>"
        )

    def test_replaces_every_occurrence(self, context: TemplateContext):
        """Test that repeated tags on one line are all replaced."""
        line = b"<cs371date>|<cs371date>|<cs371server><cs371server>"
        rendered = context.render_line(line)

        assert b"<cs371" not in rendered
        assert rendered.count(b"GMT") == 2
        assert rendered.endswith(b"TestServer/0.1TestServer/0.1")

    def test_line_without_tags_unchanged(self, context: TemplateContext):
        line = b"<html lang=\"en\">\t\xe9"
        assert context.render_line(line) == line

    def test_substitution_is_single_pass(self):
        """Test that a replacement value containing a tag is not expanded again."""
        context = TemplateContext(
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
            server_identity="evil <cs371date>",
        )

        assert context.render_line(b"<cs371server>") == b"evil <cs371date>"

    def test_custom_tags(self):
        context = TemplateContext(
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
            server_identity="S",
            date_tag="{{date}}",
            server_tag="{{server}}",
        )

        assert context.render_line(b"{{server}} <cs371server>") == b"S <cs371server>"

    def test_capture_uses_current_utc_time(self):
        """Test that capture() snapshots the time once."""
        before = datetime.now(timezone.utc)
        context = TemplateContext.capture(server_identity="S")
        after = datetime.now(timezone.utc)

        assert before <= context.timestamp <= after
        assert context.formatted_date == context.formatted_date
        assert context.formatted_date.endswith("GMT")

    def test_frozen(self, context: TemplateContext):
        with pytest.raises(AttributeError):
            context.server_identity = "other"

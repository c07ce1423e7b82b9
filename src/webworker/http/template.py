"""
=============================================================================
TEXT TEMPLATING
=============================================================================

Text responses may contain two placeholder tags that are replaced before
the bytes go on the wire:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   TAG (default)      REPLACED WITH                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │   <cs371date>        Current time as an HTTP-date                   │
    │                      e.g. Thu, 15 Jan 2026 12:30:45 GMT             │
    │   <cs371server>      The server identity string                     │
    └─────────────────────────────────────────────────────────────────────┘

    File line:    <p>Served by <cs371server> on <cs371date></p>
    Sent line:    <p>Served by WebWorker/1.0 on Thu, 15 Jan 2026 ...</p>

Replacement is EXACT-TOKEN and IN PLACE: the tag itself disappears and
the value takes its spot. Every occurrence on a line is replaced, and all
tags on a line are replaced in a single pass, so a value that happens to
contain a tag is never expanded again.

The timestamp is captured ONCE per request (TemplateContext.capture), so
the Date header and every date tag in one response agree to the second.

=============================================================================
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import cached_property


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231 IMF-fixdate).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT. Aware datetimes are converted to UTC
    first; naive ones are assumed to already be UTC.

    Args:
        dt: Datetime to format.

    Returns:
        Formatted date string.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    # Month names (1-indexed, so we subtract 1)
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


@dataclass(frozen=True)
class TemplateContext:
    """
    Values substituted into one response.

    Attributes:
        timestamp: When the request was handled (UTC).
        server_identity: Fixed server identity string.
        date_tag: Tag replaced by the formatted timestamp.
        server_tag: Tag replaced by server_identity.
    """
    timestamp: datetime
    server_identity: str
    date_tag: str = "<cs371date>"
    server_tag: str = "<cs371server>"

    @classmethod
    def capture(
        cls,
        server_identity: str,
        date_tag: str = "<cs371date>",
        server_tag: str = "<cs371server>",
    ) -> "TemplateContext":
        """Snapshot the current time for one request."""
        return cls(
            timestamp=datetime.now(timezone.utc),
            server_identity=server_identity,
            date_tag=date_tag,
            server_tag=server_tag,
        )

    @cached_property
    def formatted_date(self) -> str:
        """The timestamp as an HTTP-date."""
        return format_http_date(self.timestamp)

    @cached_property
    def _replacements(self) -> dict:
        return {
            self.date_tag.encode("utf-8"): self.formatted_date.encode("utf-8"),
            self.server_tag.encode("utf-8"): self.server_identity.encode("utf-8"),
        }

    @cached_property
    def _pattern(self) -> "re.Pattern[bytes]":
        # Longest tag first so one tag that prefixes another can't shadow it
        tags = sorted(self._replacements, key=len, reverse=True)
        return re.compile(b"|".join(re.escape(tag) for tag in tags))

    def render_line(self, line: bytes) -> bytes:
        """
        Replace every tag in one line.

        Args:
            line: A line of the file, without its line terminator.

        Returns:
            The line with each tag swapped for its value.
        """
        replacements = self._replacements
        return self._pattern.sub(lambda m: replacements[m.group(0)], line)

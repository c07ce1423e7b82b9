"""
=============================================================================
CONTENT TYPE RESOLUTION
=============================================================================

Maps a requested path to a ContentDescriptor: the MIME type to announce in
Content-Type, plus whether the body is relayed as raw bytes or rendered as
a text template.

=============================================================================
CLASSIFICATION POLICY
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │   SUFFIX            MIME TYPE        BODY HANDLING                 │
    ├────────────────────────────────────────────────────────────────────┤
    │   .png              image/png        binary relay                  │
    │   .jpeg, .jpg       image/jpeg       binary relay                  │
    │   .gif              image/gif        binary relay                  │
    │   .ico              image/x-icon     binary relay                  │
    │   anything else     text/html        line-by-line templating       │
    └────────────────────────────────────────────────────────────────────┘

Matching is on the SUFFIX of the path, case-insensitively:

    "/logo.PNG"           → image/png
    "/logo.png.html"      → text/html   (".png" is not the suffix)
    "/png-guide.html"     → text/html   (substring, not suffix)

The path is treated as opaque, exactly as the client sent it. A query
string is part of the path, so "/logo.png?v=2" ends in "?v=2" and is text.

Classification never looks at the filesystem: the descriptor for a path is
the same whether or not the file exists.

=============================================================================
"""

from dataclasses import dataclass


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Lowercase suffix (with dot) → MIME type. Only binary types are listed;
# anything not found here falls back to DEFAULT_MIME_TYPE.
#
# =============================================================================

MIME_TYPES = {
    ".png": "image/png",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",        # Favicon
}

DEFAULT_MIME_TYPE = "text/html"

BINARY_TYPES = frozenset(MIME_TYPES.values())


@dataclass(frozen=True)
class ContentDescriptor:
    """
    How a response body should be labelled and produced.

    Attributes:
        mime_type: Value for the Content-Type header.
        is_binary: True → relay bytes verbatim; False → render as text.
    """
    mime_type: str
    is_binary: bool


def get_mime_type(path: str) -> str:
    """
    Get the MIME type for a requested path from its suffix.

    Examples:
        >>> get_mime_type("/images/logo.png")
        'image/png'

        >>> get_mime_type("/FAVICON.ICO")
        'image/x-icon'

        >>> get_mime_type("/index.html")
        'text/html'
    """
    lowered = path.lower()
    for extension, mime_type in MIME_TYPES.items():
        if lowered.endswith(extension):
            return mime_type
    return DEFAULT_MIME_TYPE


def is_binary_type(mime_type: str) -> bool:
    """Image and icon types are binary; everything else is text."""
    return mime_type in BINARY_TYPES


def resolve_content_type(path: str) -> ContentDescriptor:
    """
    Classify a requested path.

    Args:
        path: The raw requested path from the request line.

    Returns:
        ContentDescriptor for the response.
    """
    mime_type = get_mime_type(path)
    return ContentDescriptor(mime_type=mime_type, is_binary=is_binary_type(mime_type))

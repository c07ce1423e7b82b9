"""
=============================================================================
HTTP PROTOCOL STAGES
=============================================================================

The four stages a ConnectionWorker runs, in order, for every connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   bytes ──► RequestParser ──► IncomingRequest                       │
    │                                     │                                │
    │                                     ▼                                │
    │             resolve_content_type ──► ContentDescriptor              │
    │                                     │                                │
    │                                     ▼                                │
    │             ResponseHeaderWriter ──► ResponsePlan + header bytes    │
    │                                     │                                │
    │                                     ▼                                │
    │             ContentStreamer ──► body bytes                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each stage's output is the next stage's input; no stage calls back into
an earlier one.

=============================================================================
"""

from .request import IncomingRequest, RequestParser, parse_request
from .mime_types import ContentDescriptor, resolve_content_type, get_mime_type, is_binary_type
from .status_codes import HTTPStatus
from .template import TemplateContext, format_http_date
from .response import (
    NOT_FOUND_BODY,
    ResponsePlan,
    ResponseHeaderWriter,
    not_found_plan,
    resolve_path,
)
from .streamer import ContentStreamer

__all__ = [
    # Stage 1: request parsing
    "IncomingRequest",
    "RequestParser",
    "parse_request",
    # Stage 2: content type
    "ContentDescriptor",
    "resolve_content_type",
    "get_mime_type",
    "is_binary_type",
    # Stage 3: status + headers
    "HTTPStatus",
    "ResponsePlan",
    "ResponseHeaderWriter",
    "NOT_FOUND_BODY",
    "not_found_plan",
    "resolve_path",
    # Stage 4: body
    "ContentStreamer",
    "TemplateContext",
    "format_http_date",
]

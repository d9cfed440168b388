"""
Streaming functionality for chat-completion clients.

This package contains:
- Line-level SSE parsing
- Byte buffering across network reads
- Cancel-aware reads
"""

from .models import StreamChunk, StreamingStats
from .parser import StreamingParser, normalize_delta_text, parse_sse_line

__all__ = [
    "StreamChunk",
    "StreamingParser",
    "StreamingStats",
    "normalize_delta_text",
    "parse_sse_line",
]

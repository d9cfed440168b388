"""
Chat-completion LLM integration.

This package provides:
- Typed request and option models
- An incremental SSE parser for streamed completions
- An error taxonomy separating transport, protocol and cancellation failures

The HTTP client lives in ``chatstream.llm.client``.
"""

from __future__ import annotations

from .exceptions import (
    LLMError,
    ProtocolError,
    StreamCancelledError,
    TransportError,
)
from .models import ChatCompletionRequest, ChatOptions, ClientConfig
from .streaming import StreamChunk

__all__ = [
    "ChatCompletionRequest",
    "ChatOptions",
    "ClientConfig",
    # Exceptions
    "LLMError",
    "ProtocolError",
    "StreamCancelledError",
    "StreamChunk",
    "TransportError",
]

"""
chatstream: stream OpenAI-compatible chat completions as typed async chunks.
"""

from __future__ import annotations

from chatstream.history.conversation_utils import (
    build_chat_request,
    normalize_messages,
    sanitize_content,
)
from chatstream.history.models import ChatMessage, ImageUrlPart, TextPart
from chatstream.llm.client import ChatCompletionClient
from chatstream.llm.exceptions import (
    LLMError,
    ProtocolError,
    StreamCancelledError,
    TransportError,
)
from chatstream.llm.models import ChatCompletionRequest, ChatOptions, ClientConfig
from chatstream.llm.streaming import StreamChunk, StreamingParser, parse_sse_line

__version__ = "0.1.0"

__all__ = [
    "ChatCompletionClient",
    "ChatCompletionRequest",
    "ChatMessage",
    "ChatOptions",
    "ClientConfig",
    "ImageUrlPart",
    "LLMError",
    "ProtocolError",
    "StreamCancelledError",
    "StreamChunk",
    "StreamingParser",
    "TextPart",
    "TransportError",
    "build_chat_request",
    "normalize_messages",
    "parse_sse_line",
    "sanitize_content",
]

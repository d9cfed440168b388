"""
Error taxonomy for chat-completion streaming.

Request/response level failures are raised to the caller:
- TransportError: non-success HTTP status or a failed network exchange
- ProtocolError: the response body cannot be read as a stream
- StreamCancelledError: the caller's cancel signal aborted the stream

Frame level problems (bad lines, malformed JSON) are never raised; the
parser drops them.
"""

from __future__ import annotations

DEFAULT_PROVIDER = "openai-compatible"


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str = DEFAULT_PROVIDER,
        model: str = "unknown",
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class TransportError(LLMError):
    """Non-success response status, or the HTTP exchange itself failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)
        self.body = body


class ProtocolError(LLMError):
    """Response arrived but its body is not readable as a stream."""
    pass


class StreamCancelledError(LLMError):
    """The stream was aborted through the caller-supplied cancel signal."""

    def __init__(self, message: str = "stream cancelled", **kwargs):
        super().__init__(message, **kwargs)

"""
Core request models for chat-completion streaming.

This module provides:
- Client configuration
- Per-call options
- The outbound request body
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from chatstream.history.models import ChatMessage

DEFAULT_COMPLETIONS_PATH = "/v1/chat/completions"


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for a chat-completions endpoint."""
    base_url: str
    default_model: str
    completions_path: str = DEFAULT_COMPLETIONS_PATH
    api_key: str | None = None
    default_temperature: float | None = None

    # Connection settings
    connect_timeout: float = 10.0
    read_timeout: float = 300.0
    write_timeout: float = 10.0
    pool_timeout: float = 10.0

    def build_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers


@dataclass(frozen=True)
class ChatOptions:
    """Optional sampling parameters for a single request."""
    temperature: float | None = None


class ChatCompletionRequest(BaseModel):
    """Outbound chat-completions body; always streamed."""
    model: str
    messages: list[ChatMessage]
    stream: Literal[True] = True
    temperature: float | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready body; unset optional fields are left out."""
        return self.model_dump(mode="json", exclude_none=True)

"""
Conversation utilities for building chat-completion request bodies.

This module turns an arbitrary message history into the minimal list of
messages a chat-completions backend accepts:
- unknown roles are dropped
- multimodal content is reduced to valid text / image_url parts
- empty or whitespace-only turns are never forwarded
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel

from chatstream.history.models import (
    ACCEPTED_ROLES,
    ChatMessage,
    ContentPart,
    ImageUrl,
    ImageUrlPart,
    TextPart,
)
from chatstream.llm.models import ChatCompletionRequest, ChatOptions

logger = structlog.get_logger(__name__)


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return value
    return None


def _field(message: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute-style message object."""
    if isinstance(message, Mapping):
        return message.get(name)
    return getattr(message, name, None)


def _sanitize_part(raw_part: Any) -> ContentPart | None:
    part = _as_mapping(raw_part)
    if part is None:
        return None

    part_type = part.get("type")
    if part_type == "text":
        text = part.get("text")
        if isinstance(text, str) and text:
            return TextPart(text=text)
        return None

    if part_type == "image_url":
        image_url = _as_mapping(part.get("image_url"))
        url = image_url.get("url") if image_url is not None else None
        # Blank urls are rejected, but the original value is forwarded untrimmed
        if isinstance(url, str) and url.strip():
            return ImageUrlPart(image_url=ImageUrl(url=url))
        return None

    return None


def sanitize_content(content: Any) -> str | list[ContentPart] | None:
    """
    Validate and normalize a single message's content field.

    Strings are returned unchanged, including the empty string; whether an
    empty string is acceptable is decided by the caller. Lists and tuples are
    filtered part by part, silently skipping anything that is not a usable
    text or image_url part.

    Args:
        content: Raw content value of a message

    Returns:
        The string, the list of surviving parts, or None when nothing usable
        remains (non-sequence input or zero surviving parts)
    """
    if isinstance(content, str):
        return content

    if not isinstance(content, list | tuple):
        return None

    cleaned: list[ContentPart] = []
    for raw_part in content:
        part = _sanitize_part(raw_part)
        if part is not None:
            cleaned.append(part)

    return cleaned or None


def normalize_messages(messages: Iterable[Any]) -> list[ChatMessage]:
    """
    Filter a message history down to protocol-acceptable messages.

    Accepts mappings, ChatMessage instances or any object exposing ``role``
    and ``content`` attributes. Relative order of kept messages is preserved
    and rejected messages are omitted, never replaced.

    Args:
        messages: Message history in conversation order

    Returns:
        Normalized messages ready for the request body
    """
    out: list[ChatMessage] = []

    for index, message in enumerate(messages):
        if message is None:
            logger.debug("Dropping message", index=index, reason="missing")
            continue

        role = _field(message, "role")
        if not isinstance(role, str) or role not in ACCEPTED_ROLES:
            logger.debug("Dropping message", index=index, reason="role", role=role)
            continue

        content = sanitize_content(_field(message, "content"))
        if content is None:
            logger.debug("Dropping message", index=index, reason="content")
            continue

        # Empty turns break some backends, never send them
        if isinstance(content, str) and not content.strip():
            logger.debug("Dropping message", index=index, reason="blank")
            continue

        out.append(ChatMessage(role=role, content=content))

    return out


def build_chat_request(
    model: str,
    messages: Iterable[Any],
    options: ChatOptions | None = None,
) -> ChatCompletionRequest:
    """Build the streamed request body from a raw message history."""
    normalized = normalize_messages(messages)
    return ChatCompletionRequest(
        model=model,
        messages=normalized,
        temperature=options.temperature if options else None,
    )

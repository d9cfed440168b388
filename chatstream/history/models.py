# chatstream/history/models.py
from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]

ACCEPTED_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


class TextPart(BaseModel):
    """Represents a non-empty text part of multimodal message content."""
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImageUrlPart(BaseModel):
    """Image reference part; the url is forwarded exactly as given."""
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentPart = Annotated[TextPart | ImageUrlPart, Field(discriminator="type")]


class ChatMessage(BaseModel):
    """
    A message that is safe to send to a chat-completions endpoint.

    Instances produced by the normalizer always carry either a non-blank
    string or at least one content part.
    """
    role: Role
    content: str | list[ContentPart]

"""
Streaming-specific models for chat-completion responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, field_validator


@dataclass(frozen=True)
class StreamChunk:
    """One unit of incremental output; ``done=True`` ends the sequence."""
    content: str = ""
    reasoning_content: str | None = None
    done: bool = False


TERMINAL_CHUNK = StreamChunk(content="", done=True)


class FrameDelta(BaseModel):
    """Incremental delta or full message of a choice. Fields are free-form."""
    content: Any = None
    reasoning_content: Any = None


class StreamChoice(BaseModel):
    delta: FrameDelta | None = None
    message: FrameDelta | None = None
    finish_reason: Any = None

    @field_validator("delta", "message", mode="before")
    @classmethod
    def _object_or_empty(cls, value: Any) -> Any:
        # A present but non-object delta carries no fields
        if value is not None and not isinstance(value, dict):
            return {}
        return value

    @property
    def payload(self) -> FrameDelta:
        """The delta if present, else the full message, else an empty delta."""
        if self.delta is not None:
            return self.delta
        if self.message is not None:
            return self.message
        return FrameDelta()


class StreamFrame(BaseModel):
    """Decoded ``data:`` payload. Only the first choice is ever consulted."""
    choices: list[StreamChoice] = []

    @field_validator("choices", mode="before")
    @classmethod
    def _first_choice_only(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[:1]
        return value

    @property
    def first_choice(self) -> StreamChoice | None:
        return self.choices[0] if self.choices else None


@dataclass
class StreamingStats:
    """Per-stream counters, reported when the stream ends."""
    bytes: int = 0
    lines: int = 0
    frames: int = 0
    dropped_lines: int = 0
    chunks: int = 0

"""
Incremental SSE parser for chat-completion streams.

Only ``data:`` lines are meaningful. Each payload is either the ``[DONE]``
sentinel or a JSON frame shaped like an OpenAI chat-completion chunk.
Malformed or irrelevant lines are dropped, never raised.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import inspect
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError

from ..exceptions import StreamCancelledError
from .models import TERMINAL_CHUNK, StreamChunk, StreamFrame, StreamingStats

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def normalize_delta_text(value: Any) -> str:
    """
    Flatten a delta text field into a plain string.

    Strings pass through. Lists contribute their string items and the string
    ``text`` field of their mapping items, concatenated in order. Anything
    else yields an empty string.
    """
    if isinstance(value, str):
        return value

    if not isinstance(value, list):
        return ""

    pieces: list[str] = []
    for part in value:
        if isinstance(part, str):
            pieces.append(part)
        elif isinstance(part, dict):
            text = part.get("text")
            if isinstance(text, str):
                pieces.append(text)
    return "".join(pieces)


def parse_sse_line(line: str) -> StreamChunk | None:
    """Parse one line of the stream into a chunk, or None if it carries nothing."""
    trimmed = line.strip()
    if not trimmed.startswith(DATA_PREFIX):
        return None

    data = trimmed[len(DATA_PREFIX):].strip()
    if not data:
        return None

    if data == DONE_SENTINEL:
        return TERMINAL_CHUNK

    try:
        frame = StreamFrame.model_validate_json(data)
    except ValidationError:
        return None

    choice = frame.first_choice
    if choice is None:
        return None

    delta = choice.payload
    content = normalize_delta_text(delta.content)
    reasoning_content = normalize_delta_text(delta.reasoning_content)

    if content or reasoning_content:
        return StreamChunk(
            content=content,
            reasoning_content=reasoning_content or None,
            done=False,
        )

    finish_reason = choice.finish_reason
    if isinstance(finish_reason, str) and finish_reason.strip():
        return TERMINAL_CHUNK

    # Heartbeat or empty frame
    return None


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise StreamCancelledError()


async def wait_or_cancel(
    awaitable: Awaitable[T], cancel_event: asyncio.Event | None
) -> T:
    """
    Await ``awaitable`` unless ``cancel_event`` fires first.

    When the event wins, the pending work is cancelled and awaited before
    StreamCancelledError is raised, so nothing keeps running in the background.
    """
    if cancel_event is None:
        return await awaitable

    if cancel_event.is_set():
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise StreamCancelledError()

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (waiter, work):
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    if work.cancelled():
        raise StreamCancelledError()
    return work.result()


async def _read_next(byte_stream: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await byte_stream.__anext__()
    except StopAsyncIteration:
        return None


class StreamingParser:
    """
    Line-buffering parser owned by exactly one stream.

    Bytes are decoded incrementally so a multi-byte character split across
    reads is reassembled. Complete lines are parsed as they arrive; the
    trailing fragment waits in the buffer for the next read.

    After the first terminal chunk the parser is finished and ignores any
    further input.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self.finished = False
        self.stats = StreamingStats()

    def feed(self, data: bytes) -> list[StreamChunk]:
        """Consume one read and return the chunks of every completed line."""
        if self.finished:
            return []

        self.stats.bytes += len(data)
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")

        chunks: list[StreamChunk] = []
        for line in lines:
            chunk = self._parse(line)
            if chunk is None:
                continue
            chunks.append(chunk)
            if chunk.done:
                # Anything after the terminal chunk is ignored
                self.finished = True
                self._buffer = ""
                break

        self.stats.chunks += len(chunks)
        return chunks

    def finish(self) -> list[StreamChunk]:
        """
        Close out a body that ended without a terminal chunk.

        The leftover fragment is parsed as a final line; a content chunk from
        it is kept, and a synthetic terminal chunk always follows.
        """
        if self.finished:
            return []
        self.finished = True

        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""

        chunks: list[StreamChunk] = []
        chunk = self._parse(tail) if tail else None
        if chunk is not None and not chunk.done:
            chunks.append(chunk)
        chunks.append(TERMINAL_CHUNK)

        self.stats.chunks += len(chunks)
        return chunks

    def _parse(self, line: str) -> StreamChunk | None:
        self.stats.lines += 1
        stripped = line.strip()
        if stripped.startswith(DATA_PREFIX):
            self.stats.frames += 1

        chunk = parse_sse_line(line)
        if chunk is None and stripped:
            self.stats.dropped_lines += 1
            logger.debug("Dropped stream line", line=stripped[:120])
        return chunk

    async def iter_chunks(
        self,
        byte_stream: AsyncIterator[bytes],
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncGenerator[StreamChunk]:
        """
        Drive the parser over an async byte stream.

        Each chunk is yielded as soon as it is parsed; the next read is only
        issued once the consumer has taken every chunk of the previous one.
        The cancel event is checked before every yield and raced against
        every read.

        Raises:
            StreamCancelledError: If ``cancel_event`` is set
        """
        while not self.finished:
            data = await wait_or_cancel(_read_next(byte_stream), cancel_event)
            if data is None:
                break
            for chunk in self.feed(data):
                raise_if_cancelled(cancel_event)
                yield chunk

        for chunk in self.finish():
            raise_if_cancelled(cancel_event)
            yield chunk

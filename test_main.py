#!/usr/bin/env python3
"""
Tests for the command-line streaming loop.
"""

import asyncio
import io

import pytest

from chatstream.llm.exceptions import (
    ProtocolError,
    StreamCancelledError,
    TransportError,
)
from chatstream.llm.streaming.models import StreamChunk
from chatstream.main import (
    EXIT_CANCELLED,
    EXIT_ERROR,
    EXIT_OK,
    build_arg_parser,
    build_messages,
    stream_to,
)


class FakeClient:
    """Replays fixed chunks, then optionally raises."""

    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.calls = []

    async def stream_chat_completion(self, model, messages, cancel_event=None, options=None):
        self.calls.append((model, messages, options))
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


async def run(client, argv, prompt="hi"):
    out, err = io.StringIO(), io.StringIO()
    args = build_arg_parser().parse_args(argv)
    code = await stream_to(client, args, prompt, asyncio.Event(), out, err)
    return code, out.getvalue(), err.getvalue()


def test_build_messages():
    assert build_messages("hi") == [{"role": "user", "content": "hi"}]
    assert build_messages("hi", "be brief") == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.asyncio
async def test_streams_content_to_stdout():
    client = FakeClient([
        StreamChunk(content="", reasoning_content="thinking"),
        StreamChunk(content="Hel"),
        StreamChunk(content="lo"),
        StreamChunk(content="", done=True),
    ])

    code, out, err = await run(client, ["--model", "llama", "--temperature", "0.5"])

    assert code == EXIT_OK
    assert out == "Hello\n"
    assert err == ""
    model, messages, options = client.calls[0]
    assert model == "llama"
    assert messages == [{"role": "user", "content": "hi"}]
    assert options.temperature == 0.5


@pytest.mark.asyncio
async def test_reasoning_goes_to_stderr_when_requested():
    client = FakeClient([
        StreamChunk(content="", reasoning_content="thinking"),
        StreamChunk(content="answer"),
        StreamChunk(content="", done=True),
    ])

    code, out, err = await run(client, ["--show-reasoning"])

    assert code == EXIT_OK
    assert out == "answer\n"
    assert err == "thinking"
    assert client.calls[0][2] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    TransportError("Chat API error: 500 - server overloaded", status_code=500),
    ProtocolError("stream not readable"),
])
async def test_failures_exit_with_error(error):
    code, out, _ = await run(FakeClient([StreamChunk(content="par")], error), [])

    assert code == EXIT_ERROR
    assert out == "par\n"


@pytest.mark.asyncio
async def test_cancellation_exit_code():
    client = FakeClient([StreamChunk(content="Hel")], StreamCancelledError())

    code, out, _ = await run(client, [])

    assert code == EXIT_CANCELLED
    assert out == "Hel\n"

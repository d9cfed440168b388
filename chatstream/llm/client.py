"""
Streaming HTTP client for OpenAI-compatible chat-completion endpoints.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Iterable
from contextlib import aclosing
from dataclasses import asdict
from typing import Any

import httpx

from chatstream.history.conversation_utils import build_chat_request
from chatstream.logging_utils import log_operation, operation_context

from .exceptions import ProtocolError, TransportError
from .models import ChatOptions, ClientConfig
from .streaming.models import StreamChunk
from .streaming.parser import StreamingParser, raise_if_cancelled, wait_or_cancel

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


class ChatCompletionClient:
    """
    HTTP client that streams chat completions as StreamChunk values.

    Owns its httpx.AsyncClient unless one is injected. Each call to
    ``stream_chat_completion`` owns its own parser, buffer and decoder, so
    concurrent streams on one client share nothing but the connection pool.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self.client: httpx.AsyncClient = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.build_timeout(),
        )

    def _resolve_options(self, options: ChatOptions | None) -> ChatOptions | None:
        if options is None and self.config.default_temperature is not None:
            return ChatOptions(temperature=self.config.default_temperature)
        return options

    async def stream_chat_completion(
        self,
        model: str | None,
        messages: Iterable[Any],
        cancel_event: asyncio.Event | None = None,
        options: ChatOptions | None = None,
    ) -> AsyncGenerator[StreamChunk]:
        """
        Stream a chat completion as a lazy sequence of chunks.

        The sequence always ends with exactly one chunk where ``done`` is
        True. Setting ``cancel_event`` aborts a pending request or read
        promptly. The response is closed exactly once on every exit path,
        including a consumer that stops iterating early.

        Args:
            model: Model name; falls back to the configured default
            messages: Raw message history, normalized before sending
            cancel_event: Optional signal that aborts the stream when set
            options: Optional sampling parameters

        Raises:
            TransportError: Non-success status or failed HTTP exchange
            ProtocolError: Response body cannot be read
            StreamCancelledError: ``cancel_event`` was set
        """
        model = model or self.config.default_model
        chat_request = build_chat_request(
            model, messages, self._resolve_options(options)
        )

        async with operation_context(
            "chat_completion_stream",
            context={"model": model, "messages": len(chat_request.messages)},
        ) as op_logger:
            raise_if_cancelled(cancel_event)

            request = self.client.build_request(
                "POST",
                self.config.completions_path,
                json=chat_request.to_payload(),
                headers=self.config.build_headers(),
            )

            try:
                response = await wait_or_cancel(
                    self.client.send(request, stream=True), cancel_event
                )
            except httpx.HTTPError as e:
                raise TransportError(f"HTTP error: {e!s}", model=model) from e

            parser = StreamingParser()
            try:
                if not response.is_success:
                    body = await self._read_error_body(response, cancel_event)
                    raise TransportError(
                        f"Chat API error: {response.status_code} - {body}",
                        status_code=response.status_code,
                        body=body,
                        model=model,
                    )

                content_type = response.headers.get("content-type", "")
                if EVENT_STREAM_CONTENT_TYPE not in content_type:
                    op_logger.warning(
                        "Unexpected content type for stream",
                        content_type=content_type,
                    )

                async with (
                    aclosing(response.aiter_bytes()) as byte_stream,
                    aclosing(parser.iter_chunks(byte_stream, cancel_event)) as chunks,
                ):
                    async for chunk in chunks:
                        yield chunk

            except httpx.StreamError as e:
                # Closed or already-consumed body
                raise ProtocolError("stream not readable", model=model) from e
            except httpx.HTTPError as e:
                raise TransportError(
                    f"HTTP error during streaming: {e!s}",
                    status_code=response.status_code,
                    model=model,
                ) from e
            finally:
                await response.aclose()
                op_logger.debug("Stream released", **asdict(parser.stats))

    async def _read_error_body(
        self, response: httpx.Response, cancel_event: asyncio.Event | None
    ) -> str:
        await wait_or_cancel(response.aread(), cancel_event)
        return response.text

    @log_operation("chat_completion_collect")
    async def collect_response(
        self,
        model: str | None,
        messages: Iterable[Any],
        cancel_event: asyncio.Event | None = None,
        options: ChatOptions | None = None,
    ) -> StreamChunk:
        """Drain a stream and return its content and reasoning joined in one chunk."""
        content: list[str] = []
        reasoning: list[str] = []

        async with aclosing(
            self.stream_chat_completion(model, messages, cancel_event, options)
        ) as stream:
            async for chunk in stream:
                content.append(chunk.content)
                if chunk.reasoning_content:
                    reasoning.append(chunk.reasoning_content)

        return StreamChunk(
            content="".join(content),
            reasoning_content="".join(reasoning) or None,
            done=True,
        )

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> ChatCompletionClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


"""
Command-line entry point: stream one chat completion to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from contextlib import aclosing
from typing import Any, TextIO

from chatstream.config import Configuration
from chatstream.llm.client import ChatCompletionClient
from chatstream.llm.exceptions import LLMError, StreamCancelledError
from chatstream.llm.models import ChatOptions

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatstream",
        description="Stream a chat completion from an OpenAI-compatible endpoint.",
    )
    parser.add_argument("prompt", nargs="?", help="User prompt (stdin if omitted)")
    parser.add_argument("--model", help="Model name (defaults to config)")
    parser.add_argument("--temperature", type=float, help="Sampling temperature")
    parser.add_argument("--system", help="Optional system prompt")
    parser.add_argument(
        "--show-reasoning",
        action="store_true",
        help="Also print reasoning_content deltas (to stderr)",
    )
    parser.add_argument("--config", help="Path to a config.yaml file")
    return parser


def build_messages(prompt: str, system: str | None = None) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


async def stream_to(
    client: ChatCompletionClient,
    args: argparse.Namespace,
    prompt: str,
    cancel_event: asyncio.Event,
    out: TextIO,
    err: TextIO,
) -> int:
    """Stream one completion into ``out``; return the process exit code."""
    options = (
        ChatOptions(temperature=args.temperature)
        if args.temperature is not None
        else None
    )
    messages = build_messages(prompt, args.system)

    try:
        async with aclosing(
            client.stream_chat_completion(args.model, messages, cancel_event, options)
        ) as stream:
            async for chunk in stream:
                if args.show_reasoning and chunk.reasoning_content:
                    err.write(chunk.reasoning_content)
                    err.flush()
                if chunk.content:
                    out.write(chunk.content)
                    out.flush()
    except StreamCancelledError:
        out.write("\n")
        logging.info("Stream cancelled")
        return EXIT_CANCELLED
    except LLMError as e:
        out.write("\n")
        logging.error(f"Chat completion failed: {e}")
        return EXIT_ERROR

    out.write("\n")
    return EXIT_OK


async def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point with signal-driven cancellation."""
    args = build_arg_parser().parse_args(argv)

    config = Configuration(args.config)
    logging.basicConfig(
        level=config.get_logging_config()["level"],
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    prompt = args.prompt if args.prompt is not None else sys.stdin.read()
    if not prompt.strip():
        logging.error("Empty prompt, nothing to send")
        return EXIT_ERROR

    cancel_event = asyncio.Event()

    def signal_handler() -> None:
        """Cancel the in-flight stream on SIGINT/SIGTERM."""
        logging.info("Received shutdown signal, cancelling stream...")
        cancel_event.set()

    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    async with ChatCompletionClient(config.get_client_config()) as client:
        return await stream_to(
            client, args, prompt, cancel_event, sys.stdout, sys.stderr
        )


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

"""
Command line entry point: send one chat completion through the gateway.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from chat_gateway.config import Configuration
from chat_gateway.gateway import build_gateway
from chat_gateway.llm.models import GPT_3_5_TURBO, ChatMessage, ChatRequest, MessageRole


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send a prompt to the chat completion API through the gateway."
    )
    parser.add_argument("prompt", help="User message to send")
    parser.add_argument("--model", default=GPT_3_5_TURBO, help="Model id")
    parser.add_argument("--system", default=None, help="Optional system prompt")
    parser.add_argument("--config", default=None, help="Path to a config.yaml")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Main entry point - one request, printed to stdout."""
    args = parse_args(argv)
    config = Configuration(args.config)

    logging.basicConfig(
        level=config.get_logging_config()["level"],
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    messages = []
    if args.system:
        messages.append(ChatMessage(role=MessageRole.SYSTEM, content=args.system))
    messages.append(ChatMessage(role=MessageRole.USER, content=args.prompt))

    gateway = build_gateway(config)
    try:
        response = await gateway.create_chat_completion(
            ChatRequest(model=args.model, messages=messages)
        )
    except Exception as e:
        logging.error(f"Application error: {e}")
        return 1
    finally:
        await gateway.close()

    print(response.content or "")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

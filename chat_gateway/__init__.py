"""
Serialized, throttled access to a chat completion API.
"""

from chat_gateway.gateway import (
    ChatCompletionGateway,
    build_gateway,
    create_chat_completion,
    get_gateway,
)

__all__ = [
    "ChatCompletionGateway",
    "build_gateway",
    "create_chat_completion",
    "get_gateway",
]

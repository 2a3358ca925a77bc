"""
Shared fixtures: temporary config files, API key isolation and mock transports.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest
import yaml

from chat_gateway.config import Configuration
from chat_gateway.gateway import ChatCompletionGateway
from chat_gateway.llm.client import ClientFactory
from chat_gateway.llm.models import GPT_4
from chat_gateway.llm.rate_limiting.models import TaskQueueConfig
from chat_gateway.llm.rate_limiting.task_queue import TaskQueue

TEST_CONFIG: dict[str, Any] = {
    "llm": {
        "active": "openai",
        "providers": {
            "openai": {
                "base_url": "https://api.openai.com/v1",
                "http_client": {
                    "connect_timeout": 5.0,
                    "read_timeout": 30.0,
                    "write_timeout": 5.0,
                    "pool_timeout": 5.0,
                },
            },
        },
    },
    "gateway": {"expensive_models": ["gpt-4"], "cooldown_seconds": 10.0},
    "queue": {"name": "test", "max_pending": None},
    "logging": {"level": "debug"},
}


def completion_body(model: str, content: str = "ok") -> dict[str, Any]:
    """A minimal successful chat completion response body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 1, "total_tokens": 6},
    }


def request_json(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


def write_config(tmp_path, config: dict[str, Any]) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config))
    return str(path)


@pytest.fixture(autouse=True)
def _api_key(monkeypatch):
    """Provide a fake API key unless a test removes it."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


@pytest.fixture
def configuration(tmp_path) -> Configuration:
    return Configuration(write_config(tmp_path, TEST_CONFIG))


@pytest.fixture
def make_gateway(configuration):
    """Build a gateway whose HTTP traffic goes to ``handler``."""

    def factory(
        handler: Handler,
        *,
        cooldown_seconds: float = 0.2,
        expensive_models: frozenset[str] = frozenset({GPT_4}),
        max_pending: int | None = None,
    ) -> ChatCompletionGateway:
        return ChatCompletionGateway(
            ChatCompletionGateway.GatewayConfig(
                task_queue=TaskQueue(TaskQueueConfig(name="test", max_pending=max_pending)),
                client_factory=ClientFactory(
                    configuration, transport=httpx.MockTransport(handler)
                ),
                expensive_models=expensive_models,
                cooldown_seconds=cooldown_seconds,
            )
        )

    return factory

"""
Chat Completion Gateway.

Public entry point for chat completions. Every request goes through one
shared single-concurrency queue, so at most one call is in flight at a
time and calls run in submission order. Requests addressed to an
expensive model are followed on the same queue by a cooldown task, which
holds back every later request until the cooldown has elapsed.

Failures are logged once under their classified kind and then delivered
to the caller unchanged; nothing is retried.
"""

from __future__ import annotations

import asyncio

from pydantic import BaseModel, ConfigDict, Field

from chat_gateway.config import Configuration
from chat_gateway.llm.client import ClientFactory
from chat_gateway.llm.models import (
    GPT4_COOLDOWN_SECONDS,
    GPT_4,
    ChatRequest,
    ChatResponse,
    RequestOptions,
)
from chat_gateway.llm.rate_limiting.models import TaskQueueConfig
from chat_gateway.llm.rate_limiting.task_queue import TaskQueue
from chat_gateway.logging_utils import ChatErrorHandler, logger, operation_context


class ChatCompletionGateway:
    """
    Serializes chat completions and throttles the expensive model tier.
    """

    class GatewayConfig(BaseModel):
        model_config = ConfigDict(arbitrary_types_allowed=True)

        task_queue: TaskQueue
        client_factory: ClientFactory
        expensive_models: frozenset[str] = frozenset({GPT_4})
        cooldown_seconds: float = Field(default=GPT4_COOLDOWN_SECONDS, ge=0)

    def __init__(self, gateway_config: ChatCompletionGateway.GatewayConfig):
        self.task_queue = gateway_config.task_queue
        self.client_factory = gateway_config.client_factory
        self.expensive_models = gateway_config.expensive_models
        self.cooldown_seconds = gateway_config.cooldown_seconds

    def is_expensive(self, model: str) -> bool:
        return model in self.expensive_models

    def create_chat_completion(
        self,
        request: ChatRequest,
        options: RequestOptions | None = None,
    ) -> asyncio.Future[ChatResponse]:
        """
        Queue a chat completion and return its future immediately.

        The future resolves with the response, or fails with the exact
        exception the transport raised. For expensive models a cooldown is
        queued right behind the request; the returned future does not wait
        for it.

        Raises:
            QueueFullError: If the queue has a capacity bound and is full
        """

        async def send() -> ChatResponse:
            async with operation_context(
                "chat_completion",
                context={"model": request.model},
                log_failure=False,
            ):
                try:
                    client = self.client_factory.get_client()
                    return await client.create_chat_completion(request, options)
                except Exception as e:
                    ChatErrorHandler.log_failure(e, model=request.model)
                    raise

        trailing = None
        if self.is_expensive(request.model) and self.cooldown_seconds > 0:
            trailing = self._cooldown

        return self.task_queue.run(
            send,
            name=f"chat_completion:{request.model}",
            trailing=trailing,
        )

    async def _cooldown(self) -> None:
        logger.debug("Cooldown started", cooldown_seconds=self.cooldown_seconds)
        await asyncio.sleep(self.cooldown_seconds)

    async def close(self) -> None:
        await self.client_factory.close()


def build_gateway(configuration: Configuration) -> ChatCompletionGateway:
    """Wire a gateway from configuration."""
    gateway_config = configuration.get_gateway_config()
    queue_config = configuration.get_queue_config()

    return ChatCompletionGateway(
        ChatCompletionGateway.GatewayConfig(
            task_queue=TaskQueue(TaskQueueConfig(**queue_config)),
            client_factory=ClientFactory(configuration),
            expensive_models=frozenset(gateway_config["expensive_models"]),
            cooldown_seconds=gateway_config["cooldown_seconds"],
        )
    )


_default_gateway: ChatCompletionGateway | None = None


def get_gateway() -> ChatCompletionGateway:
    """Return the process-wide gateway, building it on first use."""
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = build_gateway(Configuration())
    return _default_gateway


def create_chat_completion(
    request: ChatRequest,
    options: RequestOptions | None = None,
) -> asyncio.Future[ChatResponse]:
    """Queue a chat completion on the process-wide gateway."""
    return get_gateway().create_chat_completion(request, options)

"""
Tests for the lazily-built, shared chat completion client.
"""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import pytest

from chat_gateway.llm.client import ChatCompletionClient, ClientFactory
from chat_gateway.llm.exceptions import MissingCredentialsError
from chat_gateway.llm.models import ProviderType


def slow_client_builder(created: list, delay: float = 0.05):
    """Stand-in for ChatCompletionClient whose construction takes a while."""
    lock = threading.Lock()

    def build(*args, **kwargs):
        time.sleep(delay)
        client = Mock(spec=ChatCompletionClient)
        client.provider_type = ProviderType.OPENAI
        client.config = args[0]
        with lock:
            created.append(client)
        return client

    return build


class TestClientFactory:
    """Singleton construction and credential handling."""

    def test_builds_once_and_reuses(self, configuration):
        factory = ClientFactory(configuration)

        assert not factory.is_initialized
        first = factory.get_client()
        second = factory.get_client()

        assert first is second
        assert isinstance(first, ChatCompletionClient)
        assert factory.is_initialized

    def test_missing_key_fails_fast(self, configuration, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY")
        factory = ClientFactory(configuration)

        with pytest.raises(MissingCredentialsError) as exc_info:
            factory.get_client()

        assert exc_info.value.env_var == "OPENAI_API_KEY"
        assert "OPENAI_API_KEY is not configured" in str(exc_info.value)
        assert not factory.is_initialized

    def test_failed_attempt_is_not_cached(self, configuration, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY")
        factory = ClientFactory(configuration)

        with pytest.raises(MissingCredentialsError):
            factory.get_client()

        monkeypatch.setenv("OPENAI_API_KEY", "late-key")
        client = factory.get_client()
        assert client.client.headers["authorization"] == "Bearer late-key"

    def test_key_read_at_first_use_not_at_creation(self, configuration, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY")
        factory = ClientFactory(configuration)

        monkeypatch.setenv("OPENAI_API_KEY", "exported-later")
        client = factory.get_client()

        assert client.client.headers["authorization"] == "Bearer exported-later"

    def test_concurrent_first_calls_from_threads(self, configuration):
        created: list = []
        factory = ClientFactory(configuration)

        with patch(
            "chat_gateway.llm.client.ChatCompletionClient",
            side_effect=slow_client_builder(created),
        ):
            with ThreadPoolExecutor(max_workers=8) as pool:
                clients = list(pool.map(lambda _: factory.get_client(), range(16)))

        assert len(created) == 1
        assert all(client is created[0] for client in clients)

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_from_coroutines(self, configuration):
        created: list = []
        factory = ClientFactory(configuration)

        async def fetch():
            await asyncio.sleep(0)
            return factory.get_client()

        with patch(
            "chat_gateway.llm.client.ChatCompletionClient",
            side_effect=slow_client_builder(created, delay=0.0),
        ):
            clients = await asyncio.gather(*(fetch() for _ in range(10)))

        assert len(created) == 1
        assert len({id(client) for client in clients}) == 1

    @pytest.mark.asyncio
    async def test_close_releases_http_client(self, configuration):
        factory = ClientFactory(configuration)
        client = factory.get_client()

        await factory.close()

        assert client.client.is_closed

    @pytest.mark.asyncio
    async def test_close_before_first_use_is_noop(self, configuration):
        factory = ClientFactory(configuration)
        await factory.close()
        assert not factory.is_initialized

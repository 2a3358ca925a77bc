"""
Direct HTTP chat completion client and its lazy, process-wide factory.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import httpx

from chat_gateway.logging_utils import logger

from .exceptions import LLMError
from .models import ChatRequest, ChatResponse, ProviderType, RequestOptions

if TYPE_CHECKING:  # pragma: no cover
    from chat_gateway.config import Configuration

DEFAULT_TIMEOUT = 30.0


class ChatCompletionClient:
    """HTTP client for the ``/chat/completions`` endpoint."""

    def __init__(
        self,
        config: dict[str, Any],
        api_key: str,
        http_client_config: dict[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if "base_url" not in config:
            raise ValueError(
                "Required LLM configuration parameter 'base_url' not found. "
                "All LLM parameters must be explicitly configured."
            )

        self.config: dict[str, Any] = config
        self.provider_type = self._detect_provider_type(config["base_url"])
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=config["base_url"],
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=self._build_timeout(http_client_config),
            transport=transport,
        )

    @staticmethod
    def _build_timeout(http_client_config: dict[str, Any] | None) -> httpx.Timeout:
        if not http_client_config:
            return httpx.Timeout(DEFAULT_TIMEOUT)
        return httpx.Timeout(
            connect=http_client_config["connect_timeout"],
            read=http_client_config["read_timeout"],
            write=http_client_config["write_timeout"],
            pool=http_client_config["pool_timeout"],
        )

    def _detect_provider_type(self, base_url: str) -> ProviderType:
        """Detect provider type from base URL."""
        base_url_lower = base_url.lower()

        if "openai.com" in base_url_lower:
            return ProviderType.OPENAI
        if "openrouter.ai" in base_url_lower:
            return ProviderType.OPENROUTER
        if "groq.com" in base_url_lower:
            return ProviderType.GROQ

        return ProviderType.OPENAI

    async def create_chat_completion(
        self,
        request: ChatRequest,
        options: RequestOptions | None = None,
    ) -> ChatResponse:
        """
        Send one chat completion request.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            httpx.RequestError: When no response was received
            LLMError: When the response body is not a chat completion
        """
        request_kwargs: dict[str, Any] = {}
        if options is not None:
            if options.timeout is not None:
                request_kwargs["timeout"] = options.timeout
            if options.headers:
                request_kwargs["headers"] = options.headers

        response = await self.client.post(
            "/chat/completions", json=request.to_payload(), **request_kwargs
        )
        response.raise_for_status()

        result = None
        try:
            result = response.json()
            return ChatResponse.from_payload(result)
        except (KeyError, TypeError, ValueError) as e:
            raise LLMError(
                f"Unexpected response format: {e!s}",
                provider=self.provider_type.value,
                model=request.model,
                status_code=response.status_code,
                response_data=result if isinstance(result, dict) else None,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> ChatCompletionClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class ClientFactory:
    """
    Lazily builds the shared ChatCompletionClient.

    The API key is read on the first get_client() call rather than at
    import or startup, and the client is built at most once per factory.
    A failed attempt caches nothing.
    """

    def __init__(
        self,
        configuration: Configuration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.configuration = configuration
        self._transport = transport
        self._client: ChatCompletionClient | None = None
        self._init_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    def get_client(self) -> ChatCompletionClient:
        """
        Return the shared client, building it on first use.

        Raises:
            MissingCredentialsError: If the API key is not set
        """
        client = self._client
        if client is not None:
            return client

        with self._init_lock:
            if self._client is None:
                api_key = self.configuration.llm_api_key
                self._client = ChatCompletionClient(
                    self.configuration.get_llm_config(),
                    api_key,
                    http_client_config=self.configuration.get_http_client_config(),
                    transport=self._transport,
                )
                logger.info(
                    "Chat completion client created",
                    provider=self._client.provider_type.value,
                    base_url=self._client.config["base_url"],
                )
            return self._client

    async def close(self) -> None:
        """Close the shared client at shutdown."""
        if self._client is not None:
            await self._client.close()

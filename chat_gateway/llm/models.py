"""
Core chat completion dataclasses.

This module provides the dataclasses exchanged with the chat API:
- Model identifiers and their context window sizes
- Message structures
- Request/response models
- Per-request transport options
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

GPT_3_5_TURBO = "gpt-3.5-turbo"
GPT_4 = "gpt-4"

# Context window sizes in tokens. Exposed for callers, not enforced here.
CONTEXT_WINDOW_SIZE: dict[str, int] = {
    GPT_3_5_TURBO: 4000,
    GPT_4: 8000,
}

GPT4_COOLDOWN_SECONDS = 10.0


def get_context_window(model: str) -> int:
    """Return the context window size for a known model.

    Raises:
        ValueError: If the model is not in the model table.
    """
    try:
        return CONTEXT_WINDOW_SIZE[model]
    except KeyError:
        raise ValueError(
            f"Unknown model '{model}'. Known models: {sorted(CONTEXT_WINDOW_SIZE)}"
        ) from None


class ProviderType(Enum):
    """Supported chat completion providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GROQ = "groq"


class MessageRole(Enum):
    """OpenAI-compatible message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    FUNCTION = "function"


@dataclass(frozen=True)
class ChatMessage:
    """OpenAI-compatible message structure."""
    role: MessageRole
    content: str | list[dict[str, Any]] | None = None
    name: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        if self.tool_calls is not None:
            data["tool_calls"] = self.tool_calls
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        return cls(
            role=MessageRole(data["role"]),
            content=data.get("content"),
            name=data.get("name"),
            tool_calls=data.get("tool_calls"),
            tool_call_id=data.get("tool_call_id"),
        )


@dataclass(frozen=True)
class TokenUsage:
    """Token usage statistics."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ChatChoice:
    """OpenAI-compatible choice structure."""
    index: int
    message: ChatMessage
    finish_reason: str | None = None


@dataclass
class ChatRequest:
    """Chat completion request.

    Only ``model`` is inspected by the gateway; everything else is passed
    through to the provider. Fields the dataclass does not name go in
    ``extra`` and are merged into the payload as-is.
    """
    model: str
    messages: list[ChatMessage]
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stop: list[str] | None = None
    user: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for ``/chat/completions``."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
        }
        optional = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "stop": self.stop,
            "user": self.user,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        payload.update(self.extra)
        return payload


@dataclass(frozen=True)
class ChatResponse:
    """Complete chat completion response."""
    id: str
    model: str
    choices: list[ChatChoice]
    created: int | None = None
    object: str = "chat.completion"
    usage: TokenUsage | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def content(self) -> str | None:
        """Text content of the first choice, if any."""
        if not self.choices:
            return None
        content = self.choices[0].message.content
        return content if isinstance(content, str) else None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ChatResponse:
        """Parse a provider response body.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If the body or one of its fields has the wrong shape.
            ValueError: If a message carries an unknown role.
        """
        if not isinstance(data, dict):
            raise TypeError(
                f"Expected a JSON object, got {type(data).__name__}"
            )
        usage_data = data.get("usage")
        usage = (
            TokenUsage(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            )
            if usage_data
            else None
        )
        choices = [
            ChatChoice(
                index=choice.get("index", position),
                message=ChatMessage.from_dict(choice["message"]),
                finish_reason=choice.get("finish_reason"),
            )
            for position, choice in enumerate(data["choices"])
        ]
        return cls(
            id=data["id"],
            model=data["model"],
            choices=choices,
            created=data.get("created"),
            object=data.get("object", "chat.completion"),
            usage=usage,
            raw=data,
        )


@dataclass(frozen=True)
class RequestOptions:
    """Per-request transport overrides."""
    timeout: float | None = None
    headers: dict[str, str] | None = None

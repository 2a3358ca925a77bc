"""
Tests for the model table and request/response dataclasses.
"""

import pytest

from chat_gateway.llm.models import (
    CONTEXT_WINDOW_SIZE,
    GPT_3_5_TURBO,
    GPT_4,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    MessageRole,
    get_context_window,
)
from conftest import completion_body


class TestModelTable:
    def test_context_window_sizes(self):
        assert CONTEXT_WINDOW_SIZE == {GPT_3_5_TURBO: 4000, GPT_4: 8000}
        assert get_context_window(GPT_4) == 8000

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown model 'gpt-5'"):
            get_context_window("gpt-5")


class TestChatRequest:
    def test_payload_omits_unset_fields(self):
        request = ChatRequest(
            model=GPT_3_5_TURBO,
            messages=[ChatMessage(role=MessageRole.USER, content="hi")],
        )

        assert request.to_payload() == {
            "model": GPT_3_5_TURBO,
            "messages": [{"role": "user", "content": "hi"}],
        }

    def test_payload_includes_optional_and_extra_fields(self):
        request = ChatRequest(
            model=GPT_4,
            messages=[
                ChatMessage(role=MessageRole.TOOL, content="42", tool_call_id="call_1")
            ],
            max_tokens=256,
            stop=["\n"],
            extra={"response_format": {"type": "json_object"}},
        )

        payload = request.to_payload()
        assert payload["max_tokens"] == 256
        assert payload["stop"] == ["\n"]
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["messages"][0]["tool_call_id"] == "call_1"


class TestChatResponse:
    def test_from_payload(self):
        response = ChatResponse.from_payload(completion_body(GPT_4, "done"))

        assert response.id == "chatcmpl-test"
        assert response.created == 1700000000
        assert response.choices[0].message.role == MessageRole.ASSISTANT
        assert response.content == "done"
        assert response.usage.total_tokens == 6
        assert response.raw["model"] == GPT_4

    def test_missing_usage_and_empty_choices(self):
        body = completion_body(GPT_4)
        body.pop("usage")
        body["choices"] = []

        response = ChatResponse.from_payload(body)

        assert response.usage is None
        assert response.content is None

    def test_missing_required_field(self):
        body = completion_body(GPT_4)
        del body["id"]

        with pytest.raises(KeyError):
            ChatResponse.from_payload(body)

    @pytest.mark.parametrize("body", [[1, 2], "text", None])
    def test_non_object_body(self, body):
        with pytest.raises(TypeError, match="Expected a JSON object"):
            ChatResponse.from_payload(body)

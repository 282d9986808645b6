"""Tests for Anthropic LLM adapter."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from compiler_craft.adapters.llm.anthropic import (
    CHAT_CONTEXT_WITH_ANALYSIS,
    CHAT_CONTEXT_WITHOUT_ANALYSIS,
    MAX_RESPONSE_LENGTH,
    AnthropicAdapter,
)
from compiler_craft.config.schema import AnthropicConfig
from compiler_craft.models.chat import ChatMessage, ChatRole
from compiler_craft.models.phase import AnalysisResult
from compiler_craft.utils.errors import LLMError, RateLimitError, TimeoutError

API_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


@pytest.fixture
def anthropic_config() -> AnthropicConfig:
    """Create a test Anthropic configuration."""
    return AnthropicConfig(
        api_key="sk-ant-test-key-123",
        model="claude-3-5-sonnet-20241022",
        max_tokens=4096,
        temperature=0.0,
    )


@pytest.fixture
def mock_client() -> Iterator[MagicMock]:
    """Patch the SDK client class and yield the instance adapters will use."""
    with patch("compiler_craft.adapters.llm.anthropic.anthropic.AsyncAnthropic") as mock_cls:
        client = MagicMock()
        client.messages = MagicMock()
        client.messages.create = AsyncMock()
        mock_cls.return_value = client
        yield client


@pytest.fixture
def adapter(anthropic_config: AnthropicConfig, mock_client: MagicMock) -> AnthropicAdapter:
    """Create an adapter wired to the mocked SDK client."""
    return AnthropicAdapter(anthropic_config)


def respond_with(client: MagicMock, text: str) -> None:
    text_block = MagicMock()
    text_block.text = text
    response = MagicMock()
    response.content = [text_block]
    client.messages.create.return_value = response


def sent_kwargs(client: MagicMock) -> dict[str, Any]:
    return client.messages.create.await_args.kwargs


class TestAnthropicAdapterInit:
    """Test AnthropicAdapter initialization."""

    def test_model_name_property(self, adapter: AnthropicAdapter) -> None:
        """Test model_name property."""
        assert adapter.model_name == "claude-3-5-sonnet-20241022"

    def test_client_uses_api_key(self, anthropic_config: AnthropicConfig) -> None:
        """Test the SDK client is built with the configured key."""
        with patch("compiler_craft.adapters.llm.anthropic.anthropic.AsyncAnthropic") as mock_cls:
            AnthropicAdapter(anthropic_config)

        mock_cls.assert_called_once_with(api_key="sk-ant-test-key-123")


class TestAnalyzeCode:
    """Test analysis requests."""

    async def test_returns_decoded_object(
        self,
        adapter: AnthropicAdapter,
        mock_client: MagicMock,
        valid_payload: dict[str, Any],
    ) -> None:
        """Test the response JSON is decoded and returned unvalidated."""
        respond_with(mock_client, json.dumps(valid_payload))

        assert await adapter.analyze_code("int main() {}") == valid_payload

    async def test_request_shape(
        self, adapter: AnthropicAdapter, mock_client: MagicMock
    ) -> None:
        """Test model settings and the code are sent."""
        respond_with(mock_client, '{"isValidCode": false, "phases": []}')

        await adapter.analyze_code("int x = 1;")

        kwargs = sent_kwargs(mock_client)
        assert kwargs["model"] == "claude-3-5-sonnet-20241022"
        assert kwargs["max_tokens"] == 4096
        assert kwargs["temperature"] == 0.0
        assert "Lexical Analysis" in kwargs["system"]
        assert kwargs["messages"][0]["role"] == "user"
        assert "int x = 1;" in kwargs["messages"][0]["content"]

    async def test_strips_markdown_fence(
        self, adapter: AnthropicAdapter, mock_client: MagicMock
    ) -> None:
        """Test a fenced JSON response is still decoded."""
        respond_with(mock_client, '```json\n{"isValidCode": false, "phases": []}\n```')

        assert await adapter.analyze_code("x") == {"isValidCode": False, "phases": []}

    async def test_invalid_json(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test non-JSON responses raise LLMError."""
        respond_with(mock_client, "I cannot analyse this.")

        with pytest.raises(LLMError, match="Invalid JSON"):
            await adapter.analyze_code("x")

    async def test_non_object_json(
        self, adapter: AnthropicAdapter, mock_client: MagicMock
    ) -> None:
        """Test a JSON array is not accepted as an analysis."""
        respond_with(mock_client, "[1, 2, 3]")

        with pytest.raises(LLMError, match="not a JSON object"):
            await adapter.analyze_code("x")

    async def test_oversize_response(
        self, adapter: AnthropicAdapter, mock_client: MagicMock
    ) -> None:
        """Test responses beyond the length limit are refused."""
        respond_with(mock_client, "x" * (MAX_RESPONSE_LENGTH + 1))

        with pytest.raises(LLMError, match="maximum length"):
            await adapter.analyze_code("x")


class TestErrorMapping:
    """Test translation of SDK errors."""

    async def test_rate_limit(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test 429 responses become RateLimitError."""
        mock_client.messages.create.side_effect = anthropic.RateLimitError(
            "rate limited",
            response=httpx.Response(429, request=API_REQUEST),
            body=None,
        )

        with pytest.raises(RateLimitError):
            await adapter.analyze_code("x")

    async def test_timeout(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test SDK timeouts become TimeoutError."""
        mock_client.messages.create.side_effect = anthropic.APITimeoutError(request=API_REQUEST)

        with pytest.raises(TimeoutError):
            await adapter.explain_phase("x", "Optimization", "context")

    async def test_api_error(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test other API errors become LLMError."""
        mock_client.messages.create.side_effect = anthropic.APIConnectionError(
            request=API_REQUEST
        )

        with pytest.raises(LLMError, match="Anthropic API error"):
            await adapter.answer_question(None, None, [], "What is a lexer?")


class TestExplainPhase:
    """Test deep-dive requests."""

    async def test_returns_text(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test the explanation text is returned as is."""
        respond_with(mock_client, "## Optimization\nConstant folding...")

        result = await adapter.explain_phase("int a = 1 + 2;", "Optimization", "Folds constants")

        assert result == "## Optimization\nConstant folding..."
        content = sent_kwargs(mock_client)["messages"][0]["content"]
        assert "**Optimization**" in content
        assert "Folds constants" in content
        assert "int a = 1 + 2;" in content


class TestAnswerQuestion:
    """Test follow-up chat requests."""

    async def test_without_analysis(
        self, adapter: AnthropicAdapter, mock_client: MagicMock
    ) -> None:
        """Test a general question is sent bare."""
        respond_with(mock_client, "A lexer splits text into tokens.")

        answer = await adapter.answer_question(None, None, [], "What is a lexer?")

        assert answer == "A lexer splits text into tokens."
        kwargs = sent_kwargs(mock_client)
        assert CHAT_CONTEXT_WITHOUT_ANALYSIS in kwargs["system"]
        assert kwargs["messages"] == [{"role": "user", "content": "What is a lexer?"}]

    async def test_with_analysis(
        self,
        adapter: AnthropicAdapter,
        mock_client: MagicMock,
        valid_result: AnalysisResult,
        sample_code: str,
    ) -> None:
        """Test the code and analysis are included as context."""
        respond_with(mock_client, "Because of constant folding.")

        await adapter.answer_question(sample_code, valid_result, [], "Why return 15?")

        kwargs = sent_kwargs(mock_client)
        assert CHAT_CONTEXT_WITH_ANALYSIS in kwargs["system"]
        content = kwargs["messages"][-1]["content"]
        assert sample_code in content
        assert '"isValidCode": true' in content
        assert content.endswith("My question is: Why return 15?")

    async def test_history_roles(self, adapter: AnthropicAdapter, mock_client: MagicMock) -> None:
        """Test model turns map to assistant turns."""
        respond_with(mock_client, "ok")
        history = [
            ChatMessage(role=ChatRole.USER, content="first"),
            ChatMessage(role=ChatRole.MODEL, content="reply"),
        ]

        await adapter.answer_question(None, None, history, "second")

        assert sent_kwargs(mock_client)["messages"] == [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "second"},
        ]


class TestFormatHistory:
    """Test mapping chat history onto alternating turns."""

    def test_drops_leading_model_turns(self, adapter: AnthropicAdapter) -> None:
        """Test the conversation always starts with the user."""
        history = [
            ChatMessage(role=ChatRole.MODEL, content="greeting"),
            ChatMessage(role=ChatRole.USER, content="hi"),
        ]

        assert adapter._format_history(history) == [{"role": "user", "content": "hi"}]

    def test_merges_consecutive_turns(self, adapter: AnthropicAdapter) -> None:
        """Test repeated roles are merged into one turn."""
        history = [
            ChatMessage(role=ChatRole.USER, content="one"),
            ChatMessage(role=ChatRole.USER, content="two"),
            ChatMessage(role=ChatRole.MODEL, content="three"),
        ]

        assert adapter._format_history(history) == [
            {"role": "user", "content": "one\n\ntwo"},
            {"role": "assistant", "content": "three"},
        ]

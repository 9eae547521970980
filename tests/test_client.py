"""Tests for llm.client: CompletionClient over ChatOllama."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from errors import ProviderError
from llm.client import CompletionClient


class TestCompletionClient:
    @patch("llm.client.ChatOllama")
    def test_returns_stripped_text(self, mock_chat: MagicMock):
        mock_chat.return_value.invoke.return_value = AIMessage(content='  {"a": 1}  ')

        client = CompletionClient(base_url="http://ollama.test", timeout=5)
        text = client.complete("small", "system", "user", temperature=0.1, max_tokens=2000)

        assert text == '{"a": 1}'
        kwargs = mock_chat.call_args.kwargs
        assert kwargs["base_url"] == "http://ollama.test"
        assert kwargs["model"] == "small"
        assert kwargs["temperature"] == 0.1
        assert kwargs["num_predict"] == 2000
        assert kwargs["client_kwargs"] == {"timeout": 5}

    @patch("llm.client.ChatOllama")
    def test_sends_system_and_user_messages(self, mock_chat: MagicMock):
        mock_chat.return_value.invoke.return_value = AIMessage(content="ok")

        CompletionClient(timeout=5).complete("small", "be strict", "analyze this")

        messages = mock_chat.return_value.invoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "be strict"
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "analyze this"

    @patch("llm.client.ChatOllama")
    def test_transport_failure_is_provider_error(self, mock_chat: MagicMock):
        mock_chat.return_value.invoke.side_effect = ConnectionError("refused")

        with pytest.raises(ProviderError, match="refused"):
            CompletionClient(timeout=5).complete("small", "s", "u")

    @patch("llm.client.ChatOllama")
    def test_empty_content_is_provider_error(self, mock_chat: MagicMock):
        mock_chat.return_value.invoke.return_value = AIMessage(content="   ")

        with pytest.raises(ProviderError, match="no message content"):
            CompletionClient(timeout=5).complete("small", "s", "u")

    @patch("llm.client.ChatOllama")
    def test_content_blocks_are_joined(self, mock_chat: MagicMock):
        mock_chat.return_value.invoke.return_value = AIMessage(
            content=[{"type": "text", "text": "{\"a\": "}, "1}"]
        )

        assert CompletionClient(timeout=5).complete("small", "s", "u") == '{"a": 1}'

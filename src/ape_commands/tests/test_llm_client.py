"""
Tests for the langchain-core completion client adapter.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from langchain_core.language_models import FakeListLLM
from langchain_core.messages import AIMessage

from ape_commands.config.models import LLMConfig, Provider
from ape_commands.core.llm.client import (
    CompletionClient,
    LangChainCompletionClient,
    _response_text,
    create_completion_client,
)
from ape_commands.utils.error_handling import ProviderError


class TestLangChainCompletionClient:

    @pytest.mark.asyncio
    async def test_plain_llm_reply(self):
        client = LangChainCompletionClient(FakeListLLM(responses=["first", "second"]))

        assert await client.complete("prompt") == "first"
        assert await client.complete("prompt") == "second"

    @pytest.mark.asyncio
    async def test_chat_model_reply(self):
        model = Mock()
        model.ainvoke = AsyncMock(return_value=AIMessage(content='{"command": "list"}'))

        reply = await LangChainCompletionClient(model).complete("prompt")

        assert reply == '{"command": "list"}'
        model.ainvoke.assert_awaited_once_with("prompt")

    @pytest.mark.asyncio
    async def test_transport_error_becomes_provider_error(self):
        model = Mock()
        model.ainvoke = AsyncMock(side_effect=ConnectionError("refused"))

        with pytest.raises(ProviderError) as exc_info:
            await LangChainCompletionClient(model).complete("prompt")

        assert exc_info.value.details["error_type"] == "connection"

    def test_satisfies_protocol(self):
        client = LangChainCompletionClient(FakeListLLM(responses=["x"]))
        assert isinstance(client, CompletionClient)


class TestResponseText:

    def test_string(self):
        assert _response_text("text") == "text"

    def test_message_with_content_parts(self):
        message = AIMessage(content=[{"type": "text", "text": "hello "}, "world"])
        assert _response_text(message) == "hello world"

    def test_other_objects(self):
        assert _response_text(12) == "12"


class TestCreateCompletionClient:

    def test_no_provider(self):
        assert create_completion_client(LLMConfig()) is None

    def test_ollama_provider(self):
        client = create_completion_client(LLMConfig(provider=Provider.OLLAMA, model="llama3"))

        assert isinstance(client, LangChainCompletionClient)
        assert client.model.model == "llama3"

    def test_ollama_model_settings(self):
        config = LLMConfig(provider=Provider.OLLAMA, model="llama3", base_url="http://gpu-box:11434", temperature=0.2)

        client = create_completion_client(config)

        assert type(client.model).__name__ == "Ollama"
        assert client.model.base_url == "http://gpu-box:11434"
        assert client.model.temperature == pytest.approx(0.2)

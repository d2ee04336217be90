"""Unit tests for LLM provider adapters: OpenAI, Anthropic, Ollama."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cardsmith.config.settings import Settings
from cardsmith.utils.errors import LLMError


# ======================================================================
# Shared helpers
# ======================================================================

def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "anthropic_api_key": "test-anthropic",
        "anthropic_model": "",
        "ollama_base_url": "http://localhost:11434",
        "ollama_model": "",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=100)
    return response


def _api_error(message: str = "Rate limit exceeded"):
    import openai

    return openai.APIError(message=message, request=MagicMock(), body=None)


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name_tracks_base_url(self) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
        compatible = OpenAILLMProvider(_settings(openai_base_url="https://api.together.xyz/v1"))
        assert compatible.get_provider_name() == "openai-compatible"

    def test_is_available_with_key(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider
        assert OpenAILLMProvider(settings).is_available() is True

    def test_is_available_without_key(self) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider
        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("LLM response text"))

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt")

        assert result == "LLM response text"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_json_mode_requests_json_object(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response('{"questions": []}'))

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            await provider.complete("system", "user", temperature=0.1, json_mode=True)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_complete_error_wrapped(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=_api_error())

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError) as exc_info:
                await provider.complete("system", "user")

        assert exc_info.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response(None))

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_validate_credentials_success(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(return_value=MagicMock())

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.validate_credentials()

        assert result is True

    @pytest.mark.asyncio
    async def test_validate_credentials_failure(self, settings: Settings) -> None:
        from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(side_effect=_api_error("Invalid key"))

        with patch("cardsmith.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.validate_credentials()

        assert result is False


# ======================================================================
# Anthropic LLM Provider
# ======================================================================


class TestAnthropicLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider
        assert AnthropicLLMProvider(settings).get_provider_name() == "anthropic"

    def test_is_available_without_key(self) -> None:
        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider
        assert AnthropicLLMProvider(_settings(anthropic_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self, settings: Settings) -> None:
        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider

        text_block = MagicMock(type="text", text='{"questions": []}')
        other_block = MagicMock(type="tool_use")

        mock_response = MagicMock()
        mock_response.content = [text_block, other_block]
        mock_response.usage = MagicMock(input_tokens=50, output_tokens=50)

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        with patch("cardsmith.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            result = await provider.complete("system", "user", json_mode=True)

        assert result == '{"questions": []}'
        system = mock_client.messages.create.call_args.kwargs["system"]
        assert system.startswith("system\n\n")
        assert "JSON object" in system

    @pytest.mark.asyncio
    async def test_system_prompt_untouched_without_json_mode(self, settings: Settings) -> None:
        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_response = MagicMock()
        mock_response.content = [MagicMock(type="text", text="YES")]
        mock_response.usage = MagicMock(input_tokens=5, output_tokens=1)
        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        with patch("cardsmith.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            assert await provider.complete("system", "user", max_tokens=5) == "YES"

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["max_tokens"] == 5

    @pytest.mark.asyncio
    async def test_no_text_blocks_raises(self, settings: Settings) -> None:
        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_response = MagicMock()
        mock_response.content = []
        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        with patch("cardsmith.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_complete_error_wrapped(self, settings: Settings) -> None:
        import anthropic

        from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(
            side_effect=anthropic.APIError(message="overloaded", request=MagicMock(), body=None)
        )

        with patch("cardsmith.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")


# ======================================================================
# Ollama LLM Provider
# ======================================================================


class TestOllamaLLMProvider:
    def test_client_points_at_v1(self) -> None:
        from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider

        with patch("cardsmith.providers.llm.ollama_provider.openai.AsyncOpenAI") as client_cls:
            OllamaLLMProvider(_settings(ollama_base_url="http://gpu-box:11434/"))

        assert client_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"

    def test_is_available(self) -> None:
        from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider

        assert OllamaLLMProvider(_settings()).is_available() is True
        assert OllamaLLMProvider(_settings(ollama_base_url="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_uses_default_model(self) -> None:
        from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("hello"))

        with patch("cardsmith.providers.llm.ollama_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OllamaLLMProvider(_settings())
            result = await provider.complete("system", "user")

        assert result == "hello"
        assert mock_client.chat.completions.create.call_args.kwargs["model"] == "llama3.1"

    @pytest.mark.asyncio
    async def test_complete_error_wrapped(self) -> None:
        from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=_api_error("connection refused"))

        with patch("cardsmith.providers.llm.ollama_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OllamaLLMProvider(_settings())
            with pytest.raises(LLMError) as exc_info:
                await provider.complete("system", "user")

        assert exc_info.value.provider_name == "ollama"

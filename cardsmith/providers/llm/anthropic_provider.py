"""Anthropic adapter over the Messages API.

The system prompt travels as its own parameter and replies arrive as a
list of content blocks, of which only ``text`` blocks are kept.  The API
has no JSON switch, so ``json_mode`` appends an output instruction to the
system prompt instead.
"""

from __future__ import annotations

import anthropic
import structlog

from cardsmith.config.settings import Settings
from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "claude-sonnet-4-20250514"
_JSON_INSTRUCTION = "Reply with a single JSON object and no surrounding prose or code fences."


class AnthropicLLMProvider(ILLMProvider):
    """Claude models via ``anthropic.AsyncAnthropic``."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._model = settings.anthropic_model or _DEFAULT_MODEL
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        system = f"{system_prompt}\n\n{_JSON_INSTRUCTION}" if json_mode else system_prompt
        try:
            response = await self._client.messages.create(
                model=self._model,
                system=system,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except anthropic.APITimeoutError as exc:
            raise LLMError(
                message=f"Anthropic request to {self._model} timed out",
                provider_name="anthropic",
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(message=f"Anthropic API error: {exc}", provider_name="anthropic") from exc

        text = "\n".join(block.text for block in response.content if block.type == "text")
        if not text.strip():
            raise LLMError(message="Anthropic reply had no text blocks", provider_name="anthropic")

        logger.debug(
            "llm_completion",
            provider="anthropic",
            model=self._model,
            json_mode=json_mode,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return text

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Smallest possible completion; the API has no free auth check."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
        except anthropic.APIError:
            return False
        return True

    def get_provider_name(self) -> str:
        return "anthropic"

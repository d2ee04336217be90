"""Shared request path for backends that speak the ``chat.completions`` API.

OpenAI, OpenAI-compatible hosts (Together, Groq, Fireworks, ...) and
Ollama's ``/v1`` endpoint accept the same payload.  Subclasses only pick
the client, the model, and the label used in errors and logs.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class ChatCompletionsProvider(ILLMProvider):
    """Base adapter driven through an :class:`openai.AsyncOpenAI` client."""

    def __init__(self, client: openai.AsyncOpenAI, model: str, label: str) -> None:
        self._client = client
        self._model = model
        self._label = label

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        request: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._label} request to {self._model} timed out",
                provider_name=self._label,
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._label} API error: {exc}",
                provider_name=self._label,
            ) from exc

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            raise LLMError(
                message=f"{self._label} returned an empty completion",
                provider_name=self._label,
            )

        usage = response.usage
        logger.debug(
            "llm_completion",
            provider=self._label,
            model=self._model,
            json_mode=json_mode,
            total_tokens=usage.total_tokens if usage else None,
        )
        return text

    def get_provider_name(self) -> str:
        return self._label

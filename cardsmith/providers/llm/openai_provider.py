"""OpenAI adapter.

Setting ``OPENAI_BASE_URL`` points the same client at any OpenAI-compatible
host; the provider then reports itself as ``openai-compatible``.  JSON mode
maps to ``response_format={"type": "json_object"}``.
"""

from __future__ import annotations

import openai

from cardsmith.config.settings import Settings
from cardsmith.providers.llm.chat_completions import ChatCompletionsProvider

_DEFAULT_TEXT_MODEL = "gpt-4o-mini"
_REQUEST_TIMEOUT = 60.0


class OpenAILLMProvider(ChatCompletionsProvider):
    """OpenAI chat models, ``gpt-4o-mini`` unless ``OPENAI_TEXT_MODEL`` is set."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        base_url = settings.openai_base_url or None
        super().__init__(
            client=openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=base_url,
                timeout=openai.Timeout(_REQUEST_TIMEOUT, connect=5.0),
            ),
            model=settings.openai_text_model or _DEFAULT_TEXT_MODEL,
            label="openai-compatible" if base_url else "openai",
        )

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models; costs nothing and fails fast on a bad key."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
        except openai.APIError:
            return False
        return True

"""Ollama adapter for running extraction against a local model.

Ollama exposes an OpenAI-compatible ``/v1`` endpoint, so this reuses the
chat-completions path.  Small local models follow the extraction prompt
less reliably; the extractor's tolerant decoder absorbs most of that.

Setup: ``ollama pull llama3.1`` and ``OLLAMA_BASE_URL=http://localhost:11434``.
"""

from __future__ import annotations

import httpx
import openai

from cardsmith.config.settings import Settings
from cardsmith.providers.llm.chat_completions import ChatCompletionsProvider

_DEFAULT_MODEL = "llama3.1"


class OllamaLLMProvider(ChatCompletionsProvider):
    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(
            # Ollama ignores the key but the SDK refuses an empty one.
            client=openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key="ollama"),
            model=settings.ollama_model or _DEFAULT_MODEL,
            label="ollama",
        )

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Ping the native ``/api/tags`` endpoint; there is no key to check."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
        except httpx.HTTPError:
            return False
        return response.status_code == 200

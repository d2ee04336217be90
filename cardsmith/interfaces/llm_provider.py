"""The LLM contract the ingestion pipeline depends on.

Two kinds of call go through it: question extraction (long prompts, JSON
out) and the pre-written answer check (one word out).  Adapters for
OpenAI, Anthropic and Ollama live in ``cardsmith/providers/llm/``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ILLMProvider(ABC):
    """A text-in, text-out model backend."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        """Return the model's reply to *user_prompt* under *system_prompt*.

        ``json_mode`` asks for a bare JSON object.  Backends with a native
        switch use it; the rest fold the request into the prompt.

        Raises
        ------
        cardsmith.utils.errors.LLMError
            On any transport or API failure, and when the reply is empty.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Short label used in logs and error prefixes."""

    @abstractmethod
    def is_available(self) -> bool:
        """``True`` when the settings carry what this backend needs.

        Makes no network call.
        """

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Contact the backend and report whether it accepts our credentials."""

"""Test doubles and text builders shared across the cardsmith test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.models.document import Document, OriginKind
from cardsmith.utils.errors import LLMError


# ---------------------------------------------------------------------------
# Fake LLM
# ---------------------------------------------------------------------------


class FakeLLM(ILLMProvider):
    """Scriptable in-memory LLM.

    ``responder`` receives ``(system_prompt, user_prompt)`` and returns the
    reply text, or raises.  Every call is recorded in ``calls``.
    """

    def __init__(self, responder: Callable[[str, str], str] | None = None, name: str = "fake") -> None:
        self._responder = responder or (lambda _s, _u: json.dumps({"questions": []}))
        self._name = name
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        return self._responder(system_prompt, user_prompt)

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return True

    async def validate_credentials(self) -> bool:
        return True


def qa_payload(*pairs: tuple[str, str]) -> str:
    """Render Q&A pairs as the JSON object the extraction prompt asks for."""
    return json.dumps({"questions": [{"question": q, "answer": a} for q, a in pairs]})


def failing_responder(message: str = "boom") -> Callable[[str, str], str]:
    def _raise(_system: str, _user: str) -> str:
        raise LLMError(message=message, provider_name="fake")

    return _raise


# ---------------------------------------------------------------------------
# Text builders
# ---------------------------------------------------------------------------


def words(count: int, word: str = "lorem") -> str:
    """Return *count* space-separated copies of *word*."""
    return " ".join([word] * count)


def section(title: str, body_words: int, level: int = 2, word: str = "text") -> str:
    return f"{'#' * level} {title}\n{words(body_words, word)}"


def make_document(
    text: str,
    origin: str = "https://example.com/doc",
    origin_kind: OriginKind = OriginKind.WEB,
) -> Document:
    return Document.from_text(text, origin=origin, origin_kind=origin_kind)

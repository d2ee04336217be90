"""LLM-backed flashcard extraction.

Sends a document (or one chunk of it) to the configured LLM with the
atomic-flashcard prompt and normalises whatever comes back into a list of
validated :class:`~cardsmith.models.question.ExtractedQA` pairs.

Models are inconsistent about the envelope: some return the requested
``{"questions": [...]}`` object, some a bare array, and some wrap either in
a markdown code fence.  :meth:`QAExtractor.decode_payload` is the single
place that copes with all of that.  Items that fail validation (missing
fields, non-string values, blank text) are dropped individually; only a
payload that is not JSON at all fails the call.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

import structlog
from pydantic import ValidationError

from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.models.question import ExtractedQA
from cardsmith.services.prompts import ATOMIC_FLASHCARD_SYSTEM_PROMPT, build_extraction_prompt
from cardsmith.utils.errors import ExtractionError, LLMError

logger = structlog.get_logger(logger_name=__name__)

_JSON_START_RE = re.compile(r"[\[{]")
_DECODER = json.JSONDecoder()


def _looks_like_payload(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def _find_embedded_payload(text: str) -> Any | None:
    """First object or array of objects inside *text* that decodes cleanly.

    Covers a code fence around the JSON and prose before or after it
    ("Here are the cards [3 total]: {...}").  Scanning starts at each
    bracket in turn, so fences inside answer strings are never cut out.
    """
    for match in _JSON_START_RE.finditer(text):
        try:
            value, _end = _DECODER.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if _looks_like_payload(value):
            return value
    return None


class QAExtractor:
    """Turns text into flashcards with one LLM call.

    Parameters
    ----------
    llm_provider:
        The LLM backend.
    temperature:
        Sampling temperature.  Kept low so repeated syncs of the same source
        produce near-identical cards.
    max_tokens:
        Response budget per call.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @staticmethod
    def build_prompt(text: str, breadcrumb: Sequence[str] = ()) -> str:
        return build_extraction_prompt(text, breadcrumb)

    async def extract_strict(
        self, text: str, breadcrumb: Sequence[str] = ()
    ) -> list[ExtractedQA]:
        """Extract flashcards, raising on any call or decode failure.

        Raises
        ------
        ExtractionError
            If the LLM call fails or the response is not valid JSON.
        """
        provider_name = self._llm.get_provider_name()
        try:
            raw = await self._llm.complete(
                system_prompt=ATOMIC_FLASHCARD_SYSTEM_PROMPT,
                user_prompt=self.build_prompt(text, breadcrumb),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
        except LLMError as exc:
            raise ExtractionError(
                message=f"Extraction call failed: {exc.message}",
                provider_name=provider_name,
            ) from exc

        questions = self.decode_payload(raw, provider_name=provider_name)
        logger.debug(
            "questions_extracted",
            provider=provider_name,
            count=len(questions),
            context=" > ".join(breadcrumb) or None,
        )
        return questions

    async def extract(self, text: str, breadcrumb: Sequence[str] = ()) -> list[ExtractedQA]:
        """Like :meth:`extract_strict`, but a failure yields ``[]``."""
        try:
            return await self.extract_strict(text, breadcrumb)
        except ExtractionError as exc:
            logger.warning(
                "extraction_failed",
                error=str(exc),
                context=" > ".join(breadcrumb) or None,
            )
            return []

    @staticmethod
    def decode_payload(raw: str, provider_name: str | None = None) -> list[ExtractedQA]:
        """Normalise a raw LLM response into validated Q&A pairs.

        Accepts a bare JSON array or an object with a ``questions`` array,
        optionally inside a markdown code fence.  Any other JSON shape
        yields ``[]``.

        Raises
        ------
        ExtractionError
            If the response contains no parseable JSON.
        """
        text = raw.strip()
        try:
            parsed: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            parsed = _find_embedded_payload(text)
            if parsed is None:
                raise ExtractionError(
                    message=f"Unparseable extraction payload: {exc.msg}",
                    provider_name=provider_name,
                ) from exc

        if isinstance(parsed, list):
            items = parsed
        elif isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
            items = parsed["questions"]
        else:
            logger.debug("extraction_payload_unrecognised", payload_type=type(parsed).__name__)
            return []

        questions: list[ExtractedQA] = []
        dropped = 0
        for item in items:
            try:
                questions.append(ExtractedQA.model_validate(item))
            except ValidationError:
                dropped += 1
        if dropped:
            logger.debug("malformed_items_dropped", dropped=dropped, kept=len(questions))
        return questions

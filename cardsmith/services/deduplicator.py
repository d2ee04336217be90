"""Removal of repeated questions across chunks and sources.

Chunked extraction routinely yields the same question twice: a concept
mentioned in two neighbouring sections, or an LLM restating a heading.
Duplicates are matched on a key derived from the question text only.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from cardsmith.models.pipeline import DedupeKey
from cardsmith.models.question import ExtractedQA
from cardsmith.utils.text import collapse_whitespace

logger = structlog.get_logger(logger_name=__name__)

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def dedupe_key(question: str, key: DedupeKey = DedupeKey.NORMALIZED) -> str:
    """Return the comparison key for *question* under *key*."""
    if key is DedupeKey.EXACT:
        return question.strip()
    normalized = collapse_whitespace(question.strip().casefold())
    if key is DedupeKey.ALPHANUMERIC:
        return collapse_whitespace(_PUNCTUATION_RE.sub("", normalized))
    return normalized


def dedupe(
    items: Iterable[ExtractedQA],
    key: DedupeKey = DedupeKey.NORMALIZED,
    prefer_longer_answer: bool = False,
) -> list[ExtractedQA]:
    """Drop items whose question key was already seen, keeping first-seen order.

    With *prefer_longer_answer*, a later duplicate whose answer is strictly
    longer replaces the survivor in the survivor's original slot.
    """
    slots: dict[str, int] = {}
    kept: list[ExtractedQA] = []
    seen = 0

    for item in items:
        seen += 1
        item_key = dedupe_key(item.question, key)
        slot = slots.get(item_key)
        if slot is None:
            slots[item_key] = len(kept)
            kept.append(item)
        elif prefer_longer_answer and len(item.answer) > len(kept[slot].answer):
            kept[slot] = item

    if seen != len(kept):
        logger.debug("duplicates_removed", before=seen, after=len(kept), key=key.value)
    return kept

"""Small text measurements shared by the chunker, extractor, and providers."""

import math
import re

_WHITESPACE_RE = re.compile(r"\s+")


def count_words(text: str) -> int:
    """Return the number of whitespace-delimited tokens in *text*."""
    return len(text.split())


def estimate_tokens(text: str) -> int:
    """Rough LLM token estimate: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)


def collapse_whitespace(text: str) -> str:
    """Trim *text* and squeeze every internal whitespace run to one space."""
    return _WHITESPACE_RE.sub(" ", text).strip()

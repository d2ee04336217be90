"""Header-aware chunking of large markdown documents.

Splits a document into :class:`~cardsmith.models.document.Chunk` objects
sized for one extraction call each (~750 words).

The chunker has two design goals:

1. **Section-preserving** -- chunk boundaries only ever fall on a markdown
   header line (levels 1-3), so a Q&A pair is never cut in half.  Lines
   inside fenced code blocks are never mistaken for headers, which matters
   for shell snippets full of ``# comments``.

2. **Breadcrumbs** -- every chunk carries the titles of its enclosing
   headers (``["JavaScript", "Closures"]``).  The extractor sends them along
   as a context hint so a standalone slice still knows where it came from.

A chunk is flushed at a header when it has reached ``max_words``, or when
the header closes an open section (a sibling or ancestor header) and the
chunk has at least ``min_words``.  Child headers keep accumulating so
nested content stays together.  Chunks therefore never exceed
``max_words`` by more than the text up to the next header.
"""

from __future__ import annotations

import re

import structlog

from cardsmith.models.document import Chunk
from cardsmith.utils.text import count_words

logger = structlog.get_logger(logger_name=__name__)

_HEADER_RE = re.compile(r"^(#{1,3})\s+(.+?)\s*#*\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

DEFAULT_MAX_WORDS = 750
DEFAULT_MIN_WORDS = 50


class SemanticChunker:
    """Splits markdown into header-scoped chunks.

    Parameters
    ----------
    max_words:
        Word count at which the accumulated text is flushed at the next
        header (default 750).
    min_words:
        Smallest chunk worth an extraction call (default 50).  A short
        trailing remainder is merged into the chunk before it.
    """

    def __init__(
        self,
        max_words: int = DEFAULT_MAX_WORDS,
        min_words: int = DEFAULT_MIN_WORDS,
    ) -> None:
        if max_words < 1 or min_words < 1:
            raise ValueError("max_words and min_words must be positive")
        if min_words > max_words:
            raise ValueError(f"min_words ({min_words}) must not exceed max_words ({max_words})")
        self._max_words = max_words
        self._min_words = min_words

    def chunk(self, text: str) -> list[Chunk]:
        """Split *text* into chunks in document order.

        Returns ``[]`` for blank input.  When no chunk reaches
        ``min_words``, the whole document is returned as a single chunk
        with an empty breadcrumb.
        """
        if not text.strip():
            return []

        lines = text.split("\n")
        chunks = self._scan(lines)
        chunks = self._merge_short_tail(chunks)
        chunks = [c for c in chunks if c.word_count >= self._min_words]

        fallback = False
        if not chunks:
            fallback = True
            chunks = [Chunk.from_lines(lines, breadcrumb=())]

        logger.info(
            "chunking_complete",
            chunk_count=len(chunks),
            total_words=sum(c.word_count for c in chunks),
            fallback=fallback,
        )
        return chunks

    # -- Private helpers ----------------------------------------------------

    def _scan(self, lines: list[str]) -> list[Chunk]:
        """Walk *lines* once, flushing at qualifying headers."""
        chunks: list[Chunk] = []
        stack: list[tuple[int, str]] = []
        buffer: list[str] = []
        buffer_start = 0
        buffer_words = 0
        in_fence = False

        for index, line in enumerate(lines):
            if _FENCE_RE.match(line):
                in_fence = not in_fence
                header = None
            else:
                header = None if in_fence else _HEADER_RE.match(line)

            if header is not None:
                level = len(header.group(1))
                closes_section = any(open_level >= level for open_level, _ in stack)
                if buffer and (
                    buffer_words >= self._max_words
                    or (closes_section and buffer_words >= self._min_words)
                ):
                    chunks.append(
                        Chunk.from_lines(buffer, [title for _, title in stack], buffer_start)
                    )
                    buffer, buffer_start, buffer_words = [], index, 0

                while stack and stack[-1][0] >= level:
                    stack.pop()
                stack.append((level, header.group(2)))

            buffer.append(line)
            buffer_words += count_words(line)

        if buffer:
            chunks.append(Chunk.from_lines(buffer, [title for _, title in stack], buffer_start))
        return chunks

    def _merge_short_tail(self, chunks: list[Chunk]) -> list[Chunk]:
        """Fold a final chunk under ``min_words`` into its predecessor."""
        if len(chunks) < 2 or chunks[-1].word_count >= self._min_words:
            return chunks
        previous, tail = chunks[-2], chunks[-1]
        merged = Chunk.from_lines(
            [previous.text, tail.text],
            breadcrumb=previous.breadcrumb,
            start_line=previous.start_line,
        )
        # from_lines counts the two joined texts as two lines; restore the span.
        merged = merged.model_copy(update={"end_line": tail.end_line})
        return [*chunks[:-2], merged]

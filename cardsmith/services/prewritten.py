"""Pre-written answer detection and direct Q&A parsing.

Curated interview-question repositories usually ship their answers inline:
a numbered heading per question followed by the explanation, often behind
an ``**Answer:**`` marker or a collapsible ``<details>`` block.  Paying for
an LLM extraction call on such a file is wasted money and tends to lose the
author's wording, so the coordinator routes them down the direct-parse path.

Detection is two-tiered:

1. **Heuristic** (:func:`heuristic_has_answers`) -- regex checks for answer
   markers and for a numbered question heading followed by a non-empty
   line.  Any hit is conclusive.
2. **Classification** (:class:`PrewrittenAnswerDetector`) -- when the
   heuristic finds nothing and an LLM provider is attached, a single yes/no
   call decides.  A failed or unintelligible reply raises
   :class:`ClassificationError`; it is never treated as "no answers".

Parsing (:func:`parse_prewritten_qa`) splits the document at numbered
``###``/``####`` headings and, inside each section, at the first answer
marker.  No LLM call is made.
"""

from __future__ import annotations

import re

import structlog

from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.models.question import ExtractedQA
from cardsmith.services.prompts import (
    CLASSIFICATION_SYSTEM_PROMPT,
    build_classification_prompt,
)
from cardsmith.utils.errors import ClassificationError, LLMError

logger = structlog.get_logger(logger_name=__name__)

# Markers that separate a question from its written answer, in the order
# they are tried when two start at the same position.
_ANSWER_MARKERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\*\*Answer:\*\*", re.IGNORECASE),
    re.compile(r"\*\*Answer\*\*", re.IGNORECASE),
    re.compile(r"<details>", re.IGNORECASE),
    re.compile(r"#{3,4}\s*Answer", re.IGNORECASE),
    re.compile(r"#{3,4}\s*Solution", re.IGNORECASE),
)

# "### 12. Question" or "12. ### Question" (both styles are common on GitHub).
_NUMBERED_HEADING_RE = re.compile(
    r"^\s*(?:#{3,4}\s*(?P<num_a>\d+)\.|(?P<num_b>\d+)\.\s*#{3,4})\s*(?P<title>.+?)\s*$"
)

# A numbered question heading ending in "?" with a non-empty line after it.
_NUMBERED_QA_RE = re.compile(
    r"^\s*(?:#{3,4}\s*\d+\.|\d+\.\s*#{3,4})\s*.+\?\s*\n+[ \t]*\S",
    re.MULTILINE,
)

_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_SUMMARY_RE = re.compile(r"<summary>.*?</summary>", re.IGNORECASE | re.DOTALL)
_DETAILS_CLOSE_RE = re.compile(r"</details>", re.IGNORECASE)
# Every tag except <code>/<pre> and their closing forms.
_HTML_TAG_RE = re.compile(r"<(?!/?(?:code|pre)\b)[^>]+>")
_YES_NO_RE = re.compile(r"\b(yes|no)\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def heuristic_has_answers(markdown: str) -> bool:
    """Return ``True`` if *markdown* visibly contains inline answers."""
    if any(marker.search(markdown) for marker in _ANSWER_MARKERS):
        return True
    return _NUMBERED_QA_RE.search(markdown) is not None


class PrewrittenAnswerDetector:
    """Decides whether a document already contains its answers.

    Parameters
    ----------
    llm_provider:
        Optional backend for the fallback yes/no classification.  Without
        one, the heuristic result is final.
    use_ai_classification:
        Set ``False`` to skip the fallback even when a provider is attached.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider | None = None,
        use_ai_classification: bool = True,
    ) -> None:
        self._llm = llm_provider
        self._use_ai = use_ai_classification and llm_provider is not None

    async def has_answers(self, markdown: str) -> bool:
        """Return ``True`` if *markdown* should take the direct-parse path.

        Raises
        ------
        ClassificationError
            If the fallback classification call fails or its reply is
            neither YES nor NO.
        """
        if heuristic_has_answers(markdown):
            logger.info("prewritten_answers_detected", method="heuristic")
            return True
        if not self._use_ai:
            return False
        return await self._classify(markdown)

    async def _classify(self, markdown: str) -> bool:
        assert self._llm is not None
        provider_name = self._llm.get_provider_name()
        try:
            reply = await self._llm.complete(
                system_prompt=CLASSIFICATION_SYSTEM_PROMPT,
                user_prompt=build_classification_prompt(markdown),
                temperature=0.0,
                max_tokens=5,
            )
        except LLMError as exc:
            raise ClassificationError(
                message=f"Pre-written answer classification failed: {exc.message}",
                provider_name=provider_name,
            ) from exc

        match = _YES_NO_RE.search(reply)
        if match is None:
            raise ClassificationError(
                message=f"Unrecognised classification reply: {reply.strip()[:40]!r}",
                provider_name=provider_name,
            )
        verdict = match.group(1).lower() == "yes"
        logger.info("prewritten_answers_classified", method="llm", verdict=verdict)
        return verdict


# ---------------------------------------------------------------------------
# Direct parsing
# ---------------------------------------------------------------------------


def clean_text(text: str) -> str:
    """Strip bold markers and non-code HTML tags, keeping fenced code intact."""
    code_blocks: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        code_blocks.append(match.group(0))
        return f"\x00CODEBLOCK{len(code_blocks) - 1}\x00"

    cleaned = _CODE_BLOCK_RE.sub(_stash, text)
    cleaned = cleaned.replace("***", "").replace("**", "")
    cleaned = _HTML_TAG_RE.sub("", cleaned)
    for i, block in enumerate(code_blocks):
        cleaned = cleaned.replace(f"\x00CODEBLOCK{i}\x00", block)
    return cleaned.strip()


def _numbered_sections(markdown: str) -> list[str]:
    """Return each numbered section as ``title + body`` text."""
    sections: list[list[str]] = []
    in_code = False
    for line in markdown.split("\n"):
        if line.lstrip().startswith("```"):
            in_code = not in_code
        heading = None if in_code else _NUMBERED_HEADING_RE.match(line)
        if heading is not None:
            sections.append([heading.group("title")])
        elif sections:
            sections[-1].append(line)
    return ["\n".join(lines) for lines in sections]


def _split_question_answer(section: str) -> tuple[str, str]:
    """Split one section at its earliest answer marker.

    Without a marker, the first line is the question and the remaining
    non-blank lines are the answer.
    """
    earliest: re.Match[str] | None = None
    for marker in _ANSWER_MARKERS:
        match = marker.search(section)
        if match and (earliest is None or match.start() < earliest.start()):
            earliest = match

    if earliest is not None:
        question = section[: earliest.start()].strip()
        answer = section[earliest.end() :]
        answer = _DETAILS_CLOSE_RE.sub("", answer)
        answer = _SUMMARY_RE.sub("", answer).strip()
        return question, answer

    lines = section.split("\n")
    question = lines[0].strip()
    answer = "\n".join(line for line in lines[1:] if line.strip()).strip()
    return question, answer


def parse_prewritten_qa(markdown: str) -> list[ExtractedQA]:
    """Parse Q&A pairs directly from a document that already has answers.

    Sections missing either a question or an answer after cleaning are
    skipped.  Order follows the document.
    """
    questions: list[ExtractedQA] = []
    sections = _numbered_sections(markdown)
    for section in sections:
        question, answer = _split_question_answer(section)
        question, answer = clean_text(question), clean_text(answer)
        if question and answer:
            questions.append(ExtractedQA(question=question, answer=answer))

    logger.info(
        "prewritten_qa_parsed",
        sections=len(sections),
        questions=len(questions),
    )
    return questions

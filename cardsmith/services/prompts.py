"""Prompt templates for flashcard extraction and pre-written answer detection."""

from __future__ import annotations

from collections.abc import Sequence

# Enforces one concept per card and self-contained questions.
ATOMIC_FLASHCARD_SYSTEM_PROMPT = """\
You are an expert educator creating Anki flashcards for technical interview preparation.

CORE PRINCIPLES:
1. **Atomic**: Each card tests exactly ONE concept or fact
2. **Self-Contained**: Questions must make sense without the source text
3. **No Fluff**: Avoid phrases like "According to the text..." - state facts directly
4. **Preserve Code**: Keep code blocks intact with proper formatting
5. **Technical Accuracy**: Maintain precise technical terminology

FORMAT:
Return a JSON object with this exact structure:
{
  "questions": [
    {
      "question": "Clear, specific question",
      "answer": "Concise, complete answer"
    }
  ]
}

QUALITY STANDARDS:
- Questions should be specific and unambiguous
- Answers should be complete but concise (2-4 sentences ideal)
- Include code examples where relevant
- Focus on "what", "how", and "why" questions
- Avoid yes/no questions unless testing recognition"""

CLASSIFICATION_SYSTEM_PROMPT = """\
You classify markdown documents. Reply with exactly one word: YES or NO."""

# The document is truncated to keep the yes/no call cheap; answer markers
# show up early in curated Q&A files.
CLASSIFICATION_SAMPLE_CHARS = 6000


def build_extraction_prompt(content: str, breadcrumb: Sequence[str] = ()) -> str:
    """User prompt asking for flashcards from *content*.

    A non-empty *breadcrumb* is rendered as ``Section Context: A > B`` so the
    model knows which part of the larger document the slice came from.
    """
    context_info = f"\n\nSection Context: {' > '.join(breadcrumb)}" if breadcrumb else ""

    return f"""Extract high-quality technical flashcards from the content below.

Focus on:
- Key concepts and definitions
- Technical patterns and best practices
- Common interview questions and answers
- Code examples and their explanations
- Relationships between concepts

Create flashcards that help someone prepare for technical interviews.{context_info}

CONTENT:
{content}

Return only valid JSON with the questions array. No additional text."""


def build_classification_prompt(content: str) -> str:
    """User prompt for the "does this already contain answers?" check."""
    sample = content[:CLASSIFICATION_SAMPLE_CHARS]
    return f"""Does the following markdown document already contain written-out answers \
to its questions (for example a question heading followed by an explanation, \
"Answer:" sections, or collapsible answer blocks)?

A document that only lists questions, or that is prose without a question/answer \
structure, should be answered NO.

DOCUMENT:
{sample}

Reply with YES or NO."""

"""Pure and LLM-backed building blocks used by the ingestion pipeline."""

from cardsmith.services.chunker import SemanticChunker
from cardsmith.services.deduplicator import dedupe, dedupe_key
from cardsmith.services.extractor import QAExtractor
from cardsmith.services.prewritten import (
    PrewrittenAnswerDetector,
    clean_text,
    heuristic_has_answers,
    parse_prewritten_qa,
)
from cardsmith.services.size_classifier import classify_size

__all__ = [
    "PrewrittenAnswerDetector",
    "QAExtractor",
    "SemanticChunker",
    "classify_size",
    "clean_text",
    "dedupe",
    "dedupe_key",
    "heuristic_has_answers",
    "parse_prewritten_qa",
]

"""Pydantic v2 models for cardsmith.  All models are frozen."""

from cardsmith.models.document import Chunk, Document, OriginKind
from cardsmith.models.pipeline import (
    DedupeKey,
    ErrorKind,
    PipelineConfig,
    PipelineStage,
    ProcessingOutcome,
    ProcessingStrategy,
    SizeClass,
)
from cardsmith.models.question import ExtractedQA, QuestionSource, SourceKind, UpsertResult

__all__ = [
    "Chunk",
    "DedupeKey",
    "Document",
    "ErrorKind",
    "ExtractedQA",
    "OriginKind",
    "PipelineConfig",
    "PipelineStage",
    "ProcessingOutcome",
    "ProcessingStrategy",
    "QuestionSource",
    "SizeClass",
    "SourceKind",
    "UpsertResult",
]

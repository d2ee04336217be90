"""Pipeline configuration, strategy enums, and the per-run outcome model.

Architecture note:
    One ingestion run turns one Document into one :class:`ProcessingOutcome`.
    The coordinator (cardsmith/pipeline/coordinator.py) selects a
    :class:`ProcessingStrategy` exactly once, right after size
    classification and pre-written answer detection, and never reassigns
    it.  :class:`PipelineStage` values are only used for progress logging.

    :class:`PipelineConfig` is the explicit tunables struct passed into the
    coordinator at construction; ``Settings.pipeline_config()`` builds one
    from environment variables.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cardsmith.models.question import ExtractedQA, UpsertResult


class SizeClass(str, Enum):  # noqa: UP042
    """Result of the word-count budget check."""

    REJECT = "reject"
    SINGLE_PASS = "single_pass"
    CHUNKED = "chunked"


class ProcessingStrategy(str, Enum):  # noqa: UP042
    """The path the coordinator takes for a document."""

    REJECT = "reject"
    DIRECT_PARSE = "direct_parse"
    SINGLE_PASS = "single_pass"
    CHUNKED = "chunked"


class PipelineStage(str, Enum):  # noqa: UP042
    """States of one ingestion run, in order.

        START → (REJECTED | DIRECT_PARSE | SINGLE_PASS | CHUNKED) →
        EXTRACTED → DEDUPLICATED → PERSISTED → DONE
    """

    START = "start"
    REJECTED = "rejected"
    DIRECT_PARSE = "direct_parse"
    SINGLE_PASS = "single_pass"
    CHUNKED = "chunked"
    EXTRACTED = "extracted"
    DEDUPLICATED = "deduplicated"
    PERSISTED = "persisted"
    DONE = "done"


class ErrorKind(str, Enum):  # noqa: UP042
    """Why a run failed.

    EXTRACTION is only used for the single-pass call; failed chunks are
    counted in ``failed_units`` instead.
    """

    INPUT_TOO_SMALL = "input_too_small"
    ACQUISITION = "acquisition"
    CLASSIFICATION = "classification"
    EXTRACTION = "extraction"
    PERSISTENCE = "persistence"
    UNEXPECTED = "unexpected"


class DedupeKey(str, Enum):  # noqa: UP042
    """How two questions are judged to be the same.

    EXACT:        question text after trimming.
    NORMALIZED:   trimmed, casefolded, internal whitespace collapsed.
    ALPHANUMERIC: NORMALIZED with punctuation removed.
    """

    EXACT = "exact"
    NORMALIZED = "normalized"
    ALPHANUMERIC = "alphanumeric"


class PipelineConfig(BaseModel):
    """Tunables for one ingestion pipeline."""

    model_config = ConfigDict(frozen=True)

    # Chunking
    max_words: int = Field(default=750, ge=1, description="Chunk flush threshold at a header.")
    min_words: int = Field(default=50, ge=1, description="Smallest chunk worth an extraction call.")
    # Size classification
    reject_floor: int = Field(default=50, ge=0, description="Documents below this are rejected.")
    single_pass_ceiling: int = Field(
        default=3000, ge=0, description="Largest document extracted in a single call."
    )
    # Extraction
    max_concurrent: int = Field(default=3, ge=1, description="Extraction calls per batch.")
    extraction_timeout: float | None = Field(
        default=60.0, gt=0, description="Per-call timeout in seconds; None disables it."
    )
    # Deduplication
    dedupe_key: DedupeKey = DedupeKey.NORMALIZED
    prefer_longer_answer: bool = False
    # Pre-written answer detection
    detect_prewritten_for_all: bool = Field(
        default=False,
        description="Check web pages for pre-written answers too, not just GitHub files.",
    )
    use_ai_classification: bool = Field(
        default=True,
        description="Ask the LLM when the answer-marker heuristic is inconclusive.",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> PipelineConfig:
        if self.min_words > self.max_words:
            raise ValueError(
                f"min_words ({self.min_words}) must not exceed max_words ({self.max_words})"
            )
        if self.reject_floor > self.single_pass_ceiling:
            raise ValueError(
                f"reject_floor ({self.reject_floor}) must not exceed "
                f"single_pass_ceiling ({self.single_pass_ceiling})"
            )
        return self


class ProcessingOutcome(BaseModel):
    """Structured result of one ingestion run.  Never persisted by the pipeline."""

    model_config = ConfigDict(frozen=True)

    success: bool
    origin: str
    strategy: ProcessingStrategy | None = None
    question_count: int = Field(default=0, ge=0)
    # Set only for the CHUNKED strategy.
    chunk_count: int | None = None
    word_count: int = Field(default=0, ge=0)
    error: str | None = None
    error_kind: ErrorKind | None = None
    # Units of work (chunks, or the single pass) whose extraction failed.
    failed_units: int = Field(default=0, ge=0)
    duplicates_removed: int = Field(default=0, ge=0)
    questions: tuple[ExtractedQA, ...] = ()
    upsert: UpsertResult | None = None

    @classmethod
    def failure(
        cls,
        origin: str,
        error: str,
        error_kind: ErrorKind,
        strategy: ProcessingStrategy | None = None,
        word_count: int = 0,
    ) -> ProcessingOutcome:
        return cls(
            success=False,
            origin=origin,
            strategy=strategy,
            word_count=word_count,
            error=error,
            error_kind=error_kind,
        )

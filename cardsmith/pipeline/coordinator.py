"""Ingestion coordinator: one document in, one ProcessingOutcome out.

Wires the size classifier, pre-written answer detector, chunker, extractor,
deduplicator, and (optionally) the question store into a single run.

ARCHITECTURE NOTE:
    The run is a small state machine::

        START → REJECTED | DIRECT_PARSE | SINGLE_PASS | CHUNKED
              → EXTRACTED → DEDUPLICATED → PERSISTED → DONE

    The strategy is chosen exactly once, in :meth:`select_strategy`, and is
    never reassigned; each strategy is a separate method that returns a
    flat list of questions.  Every later stage is shared.

    Failure handling follows one rule: nothing is raised to the caller.
    Terminal failures (too little text, acquisition, classification, a
    failed or timed-out single-pass call, persistence, anything unexpected)
    become a failed :class:`ProcessingOutcome`.
    Per-chunk extraction failures are absorbed and counted in
    ``failed_units``; the run still succeeds with whatever the other
    chunks produced.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.interfaces.question_store import IQuestionStore
from cardsmith.models.document import Chunk, Document, OriginKind
from cardsmith.models.pipeline import (
    ErrorKind,
    PipelineConfig,
    PipelineStage,
    ProcessingOutcome,
    ProcessingStrategy,
    SizeClass,
)
from cardsmith.models.question import ExtractedQA
from cardsmith.services.chunker import SemanticChunker
from cardsmith.services.deduplicator import dedupe
from cardsmith.services.extractor import QAExtractor
from cardsmith.services.prewritten import PrewrittenAnswerDetector, parse_prewritten_qa
from cardsmith.services.size_classifier import classify_size
from cardsmith.utils.concurrency import run_in_batches
from cardsmith.utils.errors import (
    AcquisitionError,
    ClassificationError,
    ExtractionError,
    PersistenceError,
    PipelineError,
)
from cardsmith.utils.logging import get_logger


@dataclass
class _ExtractionResult:
    questions: list[ExtractedQA]
    chunk_count: int | None = None
    failed_units: int = 0


class IngestionPipeline:
    """Runs one document through the extraction pipeline.

    All collaborators are injected.  ``store`` may be ``None`` (dry runs and
    the ``process --no-store`` CLI command); ``content_provider`` is only
    needed for :meth:`process_origin`.  ``detector`` defaults to a
    :class:`PrewrittenAnswerDetector` backed by the same LLM.
    """

    def __init__(
        self,
        config: PipelineConfig,
        llm: ILLMProvider,
        content_provider: IContentProvider | None = None,
        store: IQuestionStore | None = None,
        detector: PrewrittenAnswerDetector | None = None,
    ) -> None:
        self._config = config
        self._llm = llm
        self._content_provider = content_provider
        self._store = store
        self._detector = detector or PrewrittenAnswerDetector(
            llm, use_ai_classification=config.use_ai_classification
        )
        self._extractor = QAExtractor(llm)
        self._chunker = SemanticChunker(max_words=config.max_words, min_words=config.min_words)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process_origin(self, origin: str, source_name: str | None = None) -> ProcessingOutcome:
        """Fetch *origin* through the content provider, then process it."""
        if self._content_provider is None:
            self._logger.error("acquisition_failed", origin=origin, reason="no_content_provider")
            return ProcessingOutcome.failure(
                origin, "No content provider configured; cannot fetch origins", ErrorKind.ACQUISITION
            )

        try:
            document = await self._content_provider.fetch(origin)
        except AcquisitionError as exc:
            self._logger.warning(
                "acquisition_failed", origin=origin, reason=exc.reason, error=exc.message
            )
            return ProcessingOutcome.failure(origin, exc.message, ErrorKind.ACQUISITION)
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("pipeline_unexpected_error", origin=origin, stage="fetch")
            return ProcessingOutcome.failure(
                origin, str(exc) or type(exc).__name__, ErrorKind.UNEXPECTED
            )

        return await self.process_document(document, source_name=source_name)

    async def aclose(self) -> None:
        """Close the content provider's network clients."""
        if self._content_provider is not None:
            await self._content_provider.aclose()

    async def process_document(
        self, document: Document, source_name: str | None = None
    ) -> ProcessingOutcome:
        """Run the full state machine for an already-acquired document."""
        origin = document.origin
        self._stage(PipelineStage.START, origin, word_count=document.word_count)

        try:
            strategy = await self.select_strategy(document)
        except ClassificationError as exc:
            self._logger.error("classification_failed", origin=origin, error=str(exc))
            return ProcessingOutcome.failure(
                origin, exc.message, ErrorKind.CLASSIFICATION, word_count=document.word_count
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("pipeline_unexpected_error", origin=origin, stage="classify")
            return ProcessingOutcome.failure(
                origin,
                str(exc) or type(exc).__name__,
                ErrorKind.UNEXPECTED,
                word_count=document.word_count,
            )

        if strategy is ProcessingStrategy.REJECT:
            self._stage(PipelineStage.REJECTED, origin)
            return ProcessingOutcome.failure(
                origin,
                f"Content too small ({document.word_count} words). "
                f"Minimum {self._config.reject_floor} words required.",
                ErrorKind.INPUT_TOO_SMALL,
                strategy=strategy,
                word_count=document.word_count,
            )

        try:
            extraction = await self._run_strategy(strategy, document)
            self._stage(
                PipelineStage.EXTRACTED,
                origin,
                questions=len(extraction.questions),
                failed_units=extraction.failed_units,
            )

            unique = dedupe(
                extraction.questions,
                key=self._config.dedupe_key,
                prefer_longer_answer=self._config.prefer_longer_answer,
            )
            self._stage(PipelineStage.DEDUPLICATED, origin, questions=len(unique))

            upsert = None
            if self._store is not None and unique:
                upsert = await self._store.upsert_questions(
                    unique, source=origin, source_name=source_name
                )
                self._stage(PipelineStage.PERSISTED, origin, inserted=upsert.inserted)
        except ExtractionError as exc:
            self._logger.error("single_pass_extraction_failed", origin=origin, error=str(exc))
            return ProcessingOutcome.failure(
                origin,
                exc.message,
                ErrorKind.EXTRACTION,
                strategy=strategy,
                word_count=document.word_count,
            )
        except PersistenceError as exc:
            self._logger.error("persistence_failed", origin=origin, error=str(exc))
            return ProcessingOutcome.failure(
                origin,
                exc.message,
                ErrorKind.PERSISTENCE,
                strategy=strategy,
                word_count=document.word_count,
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("pipeline_unexpected_error", origin=origin)
            return ProcessingOutcome.failure(
                origin,
                str(exc) or type(exc).__name__,
                ErrorKind.UNEXPECTED,
                strategy=strategy,
                word_count=document.word_count,
            )

        self._stage(PipelineStage.DONE, origin, strategy=strategy.value)
        return ProcessingOutcome(
            success=True,
            origin=origin,
            strategy=strategy,
            question_count=len(unique),
            chunk_count=extraction.chunk_count,
            word_count=document.word_count,
            failed_units=extraction.failed_units,
            duplicates_removed=len(extraction.questions) - len(unique),
            questions=tuple(unique),
            upsert=upsert,
        )

    async def select_strategy(self, document: Document) -> ProcessingStrategy:
        """Pick the processing path for *document*.

        Raises
        ------
        ClassificationError
            If the pre-written answer classification call fails.
        """
        size = classify_size(
            document.word_count,
            reject_floor=self._config.reject_floor,
            single_pass_ceiling=self._config.single_pass_ceiling,
        )
        if size is SizeClass.REJECT:
            strategy = ProcessingStrategy.REJECT
        elif self._should_detect(document) and await self._detector.has_answers(document.text):
            strategy = ProcessingStrategy.DIRECT_PARSE
        elif size is SizeClass.SINGLE_PASS:
            strategy = ProcessingStrategy.SINGLE_PASS
        else:
            strategy = ProcessingStrategy.CHUNKED

        self._logger.info(
            "pipeline_strategy_selected",
            origin=document.origin,
            strategy=strategy.value,
            size_class=size.value,
            word_count=document.word_count,
        )
        return strategy

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _run_strategy(
        self, strategy: ProcessingStrategy, document: Document
    ) -> _ExtractionResult:
        if strategy is ProcessingStrategy.DIRECT_PARSE:
            self._stage(PipelineStage.DIRECT_PARSE, document.origin)
            return _ExtractionResult(questions=parse_prewritten_qa(document.text))
        if strategy is ProcessingStrategy.SINGLE_PASS:
            self._stage(PipelineStage.SINGLE_PASS, document.origin)
            return await self._extract_single_pass(document)
        if strategy is ProcessingStrategy.CHUNKED:
            return await self._extract_chunked(document)
        raise PipelineError(message=f"Strategy {strategy.value} has no extraction path")

    async def _extract_single_pass(self, document: Document) -> _ExtractionResult:
        """One extraction call for the whole document.

        Raises
        ------
        ExtractionError
            If the call fails, returns no JSON, or exceeds the extraction
            timeout.  With no other unit to fall back on, the run fails.
        """
        timeout = self._config.extraction_timeout
        try:
            questions = await asyncio.wait_for(
                self._extractor.extract_strict(document.text), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise ExtractionError(
                message=f"Extraction call timed out after {timeout:g}s",
                provider_name=self._llm.get_provider_name(),
            ) from exc
        return _ExtractionResult(questions=questions)

    async def _extract_chunked(self, document: Document) -> _ExtractionResult:
        chunks = self._chunker.chunk(document.text)
        self._stage(PipelineStage.CHUNKED, document.origin, chunk_count=len(chunks))

        failed: list[int] = []

        def _on_error(index: int, exc: BaseException) -> None:
            failed.append(index)
            self._logger.warning(
                "chunk_extraction_failed",
                origin=document.origin,
                chunk=index,
                context=chunks[index].context_label or None,
                error=str(exc) or type(exc).__name__,
            )

        async def _extract(chunk: Chunk) -> list[ExtractedQA]:
            return await self._extractor.extract_strict(chunk.text, chunk.breadcrumb)

        per_chunk = await run_in_batches(
            chunks,
            _extract,
            self._config.max_concurrent,
            timeout=self._config.extraction_timeout,
            on_error=_on_error,
        )
        questions = [qa for chunk_questions in per_chunk for qa in chunk_questions]
        return _ExtractionResult(
            questions=questions,
            chunk_count=len(chunks),
            failed_units=len(failed),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _should_detect(self, document: Document) -> bool:
        return (
            self._config.detect_prewritten_for_all
            or document.origin_kind is OriginKind.VERSION_CONTROL
        )

    def _stage(self, stage: PipelineStage, origin: str, **context: object) -> None:
        self._logger.info("pipeline_stage", stage=stage.value, origin=origin, **context)

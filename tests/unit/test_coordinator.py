"""Unit tests for IngestionPipeline: strategy selection and failure mapping."""

from __future__ import annotations

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.interfaces.question_store import IQuestionStore
from cardsmith.models.document import OriginKind
from cardsmith.models.pipeline import (
    ErrorKind,
    PipelineConfig,
    ProcessingStrategy,
)
from cardsmith.models.question import UpsertResult
from cardsmith.pipeline.coordinator import IngestionPipeline
from cardsmith.services.prewritten import PrewrittenAnswerDetector
from cardsmith.services.prompts import CLASSIFICATION_SYSTEM_PROMPT
from cardsmith.utils.errors import AcquisitionError, LLMError, PersistenceError
from helpers import FakeLLM, failing_responder, make_document, qa_payload, section, words

_CONTEXT_RE = re.compile(r"Section Context: (.+)")


def _per_section_responder(fail_on: str | None = None):
    """Reply with one question per chunk plus a question every chunk shares."""

    def _reply(system_prompt: str, user_prompt: str) -> str:
        if system_prompt == CLASSIFICATION_SYSTEM_PROMPT:
            return "NO"
        match = _CONTEXT_RE.search(user_prompt)
        label = match.group(1) if match else "document"
        if fail_on is not None and label == fail_on:
            raise LLMError(message=f"failed on {label}", provider_name="fake")
        return qa_payload(
            (f"What is {label}?", f"{label} is a section."),
            ("What is shared?", "Every chunk mentions it."),
        )

    return _reply


def _chunked_text(sections: int = 8, size: int = 500) -> str:
    return "\n".join(section(f"S{i}", size) for i in range(sections))


def _store(result: UpsertResult | None = None, error: Exception | None = None) -> MagicMock:
    store = MagicMock(spec=IQuestionStore)
    store.upsert_questions = AsyncMock(
        return_value=result or UpsertResult(inserted=1, total=1), side_effect=error
    )
    return store


class _SlowLLM(FakeLLM):
    """Answers correctly, but only after ``delay`` seconds."""

    def __init__(self, delay: float) -> None:
        super().__init__(lambda _s, _u: qa_payload(("Q?", "A")))
        self._delay = delay

    async def complete(self, system_prompt: str, user_prompt: str, **kwargs) -> str:
        await asyncio.sleep(self._delay)
        return await super().complete(system_prompt, user_prompt, **kwargs)


# ======================================================================
# Strategy selection
# ======================================================================


class TestRejection:
    @pytest.mark.asyncio
    async def test_forty_words_rejected_without_llm(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM()
        pipeline = IngestionPipeline(pipeline_config, llm)

        outcome = await pipeline.process_document(make_document(words(40)))

        assert outcome.success is False
        assert outcome.strategy is ProcessingStrategy.REJECT
        assert outcome.error_kind is ErrorKind.INPUT_TOO_SMALL
        assert outcome.error == "Content too small (40 words). Minimum 50 words required."
        assert outcome.word_count == 40
        assert llm.calls == []


class TestSinglePass:
    @pytest.mark.asyncio
    async def test_single_call_and_dedupe(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM(
            lambda _s, _u: qa_payload(
                ("What is a closure?", "A function with scope."),
                ("what is a  closure?", "Duplicate."),
                ("What is hoisting?", "Moving declarations up."),
            )
        )
        pipeline = IngestionPipeline(pipeline_config, llm)

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is True
        assert outcome.strategy is ProcessingStrategy.SINGLE_PASS
        assert outcome.chunk_count is None
        assert outcome.question_count == 2
        assert outcome.duplicates_removed == 1
        assert [qa.question for qa in outcome.questions] == ["What is a closure?", "What is hoisting?"]
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_unparseable_reply_fails_the_run(self, pipeline_config: PipelineConfig) -> None:
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(lambda _s, _u: "not json"))

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.EXTRACTION
        assert outcome.strategy is ProcessingStrategy.SINGLE_PASS
        assert outcome.question_count == 0

    @pytest.mark.asyncio
    async def test_llm_error_fails_the_run(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM(failing_responder("401 invalid api key"))
        store = _store()
        pipeline = IngestionPipeline(pipeline_config, llm, store=store)

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.EXTRACTION
        assert "401 invalid api key" in outcome.error
        store.upsert_questions.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self) -> None:
        config = PipelineConfig(extraction_timeout=0.05)
        pipeline = IngestionPipeline(config, _SlowLLM(delay=5.0))

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.EXTRACTION
        assert "timed out" in outcome.error


class TestChunked:
    @pytest.mark.asyncio
    async def test_chunks_extracted_and_deduplicated(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM(_per_section_responder())
        pipeline = IngestionPipeline(pipeline_config, llm)

        outcome = await pipeline.process_document(make_document(_chunked_text()))

        assert outcome.success is True
        assert outcome.strategy is ProcessingStrategy.CHUNKED
        assert outcome.chunk_count == 8
        assert len(llm.calls) == 8
        # 8 unique questions plus one shared question kept once.
        assert outcome.question_count == 9
        assert outcome.duplicates_removed == 7
        assert outcome.questions[0].question == "What is S0?"
        assert outcome.questions[1].question == "What is shared?"
        assert outcome.questions[-1].question == "What is S7?"

    @pytest.mark.asyncio
    async def test_chunk_failure_is_absorbed(self, pipeline_config: PipelineConfig) -> None:
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(_per_section_responder(fail_on="S3")))

        outcome = await pipeline.process_document(make_document(_chunked_text()))

        assert outcome.success is True
        assert outcome.failed_units == 1
        questions = {qa.question for qa in outcome.questions}
        assert "What is S3?" not in questions
        assert {"What is S2?", "What is S4?"} <= questions

    @pytest.mark.asyncio
    async def test_every_chunk_failing_still_succeeds(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM(lambda _s, _u: "garbage")
        pipeline = IngestionPipeline(pipeline_config, llm)

        outcome = await pipeline.process_document(make_document(_chunked_text()))

        assert outcome.success is True
        assert outcome.question_count == 0
        assert outcome.failed_units == outcome.chunk_count == 8


class TestDirectParse:
    @pytest.mark.asyncio
    async def test_version_control_document_parsed_without_llm(
        self, pipeline_config: PipelineConfig, prewritten_markdown: str
    ) -> None:
        llm = FakeLLM()
        pipeline = IngestionPipeline(pipeline_config, llm)
        document = make_document(prewritten_markdown, origin_kind=OriginKind.VERSION_CONTROL)

        outcome = await pipeline.process_document(document)

        assert outcome.success is True
        assert outcome.strategy is ProcessingStrategy.DIRECT_PARSE
        assert outcome.question_count == 3
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_web_document_not_checked_by_default(
        self, pipeline_config: PipelineConfig, prewritten_markdown: str
    ) -> None:
        llm = FakeLLM()
        pipeline = IngestionPipeline(pipeline_config, llm)

        outcome = await pipeline.process_document(make_document(prewritten_markdown))

        assert outcome.strategy is ProcessingStrategy.SINGLE_PASS
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_detect_for_all_origins(self, prewritten_markdown: str) -> None:
        config = PipelineConfig(extraction_timeout=None, detect_prewritten_for_all=True)
        pipeline = IngestionPipeline(config, FakeLLM())

        outcome = await pipeline.process_document(make_document(prewritten_markdown))

        assert outcome.strategy is ProcessingStrategy.DIRECT_PARSE

    @pytest.mark.asyncio
    async def test_classification_no_falls_through_to_size(
        self, pipeline_config: PipelineConfig
    ) -> None:
        llm = FakeLLM(_per_section_responder())
        pipeline = IngestionPipeline(pipeline_config, llm)
        document = make_document(words(200), origin_kind=OriginKind.VERSION_CONTROL)

        outcome = await pipeline.process_document(document)

        assert outcome.strategy is ProcessingStrategy.SINGLE_PASS
        assert [c["system_prompt"] == CLASSIFICATION_SYSTEM_PROMPT for c in llm.calls] == [True, False]


# ======================================================================
# Failure mapping
# ======================================================================


class TestFailures:
    @pytest.mark.asyncio
    async def test_classification_failure_is_terminal(self, pipeline_config: PipelineConfig) -> None:
        llm = FakeLLM(lambda _s, _u: "I am not sure")
        pipeline = IngestionPipeline(pipeline_config, llm)
        document = make_document(words(200), origin_kind=OriginKind.VERSION_CONTROL)

        outcome = await pipeline.process_document(document)

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.CLASSIFICATION
        assert outcome.strategy is None
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_acquisition_failure(self, pipeline_config: PipelineConfig) -> None:
        provider = MagicMock(spec=IContentProvider)
        provider.fetch = AsyncMock(
            side_effect=AcquisitionError(
                message="HTTP 404 for https://example.com/x",
                provider_name="web",
                reason="fetch_failed",
            )
        )
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(), content_provider=provider)

        outcome = await pipeline.process_origin("https://example.com/x")

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.ACQUISITION
        assert outcome.strategy is None
        assert outcome.error == "HTTP 404 for https://example.com/x"

    @pytest.mark.asyncio
    async def test_persistence_failure(self, pipeline_config: PipelineConfig) -> None:
        store = _store(error=PersistenceError(message="disk full", provider_name="sqlite"))
        pipeline = IngestionPipeline(
            pipeline_config, FakeLLM(lambda _s, _u: qa_payload(("Q?", "A"))), store=store
        )

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.PERSISTENCE
        assert outcome.strategy is ProcessingStrategy.SINGLE_PASS
        assert outcome.error == "disk full"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_outcome(self, pipeline_config: PipelineConfig) -> None:
        store = _store(error=RuntimeError("kaboom"))
        pipeline = IngestionPipeline(
            pipeline_config, FakeLLM(lambda _s, _u: qa_payload(("Q?", "A"))), store=store
        )

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.UNEXPECTED
        assert outcome.error == "kaboom"

    @pytest.mark.asyncio
    async def test_detector_crash_becomes_outcome(self, pipeline_config: PipelineConfig) -> None:
        detector = MagicMock(spec=PrewrittenAnswerDetector)
        detector.has_answers = AsyncMock(side_effect=RuntimeError("network reset"))
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(), detector=detector)
        document = make_document(words(200), origin_kind=OriginKind.VERSION_CONTROL)

        outcome = await pipeline.process_document(document)

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.UNEXPECTED
        assert outcome.strategy is None
        assert outcome.error == "network reset"
        assert outcome.word_count == 200

    @pytest.mark.asyncio
    async def test_fetch_crash_becomes_outcome(self, pipeline_config: PipelineConfig) -> None:
        provider = MagicMock(spec=IContentProvider)
        provider.fetch = AsyncMock(side_effect=ValueError("extractor crashed"))
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(), content_provider=provider)

        outcome = await pipeline.process_origin("https://example.com/x")

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.UNEXPECTED
        assert outcome.origin == "https://example.com/x"
        assert outcome.error == "extractor crashed"

    @pytest.mark.asyncio
    async def test_missing_content_provider(self, pipeline_config: PipelineConfig) -> None:
        pipeline = IngestionPipeline(pipeline_config, FakeLLM())

        outcome = await pipeline.process_origin("https://example.com/x")

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.ACQUISITION
        assert "No content provider" in outcome.error


class TestClose:
    @pytest.mark.asyncio
    async def test_aclose_delegates_to_content_provider(
        self, pipeline_config: PipelineConfig
    ) -> None:
        provider = MagicMock(spec=IContentProvider)
        provider.aclose = AsyncMock()
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(), content_provider=provider)

        await pipeline.aclose()

        provider.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_without_provider(self, pipeline_config: PipelineConfig) -> None:
        await IngestionPipeline(pipeline_config, FakeLLM()).aclose()


# ======================================================================
# Persistence
# ======================================================================


class TestPersistence:
    @pytest.mark.asyncio
    async def test_store_receives_deduplicated_questions(
        self, pipeline_config: PipelineConfig
    ) -> None:
        store = _store(UpsertResult(inserted=1, updated=0, skipped=0, total=1))
        llm = FakeLLM(lambda _s, _u: qa_payload(("Q?", "A"), ("q?", "B")))
        pipeline = IngestionPipeline(pipeline_config, llm, store=store)
        document = make_document(words(200), origin="https://example.com/guide")

        outcome = await pipeline.process_document(document, source_name="Guide")

        store.upsert_questions.assert_awaited_once()
        args, kwargs = store.upsert_questions.call_args
        assert [qa.question for qa in args[0]] == ["Q?"]
        assert kwargs == {"source": "https://example.com/guide", "source_name": "Guide"}
        assert outcome.upsert == UpsertResult(inserted=1, total=1)

    @pytest.mark.asyncio
    async def test_store_skipped_when_nothing_extracted(
        self, pipeline_config: PipelineConfig
    ) -> None:
        store = _store()
        pipeline = IngestionPipeline(pipeline_config, FakeLLM(), store=store)

        outcome = await pipeline.process_document(make_document(words(200)))

        assert outcome.success is True
        assert outcome.upsert is None
        store.upsert_questions.assert_not_awaited()

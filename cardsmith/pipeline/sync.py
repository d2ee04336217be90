"""Sequential sync of every configured question source.

Each source in ``config/sources.yaml`` is pushed through the ingestion
pipeline one after another.  Sources are not processed concurrently: each
run already fans out its own extraction calls, and stacking runs would
multiply the load on the LLM provider.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from cardsmith.models.pipeline import ProcessingOutcome
from cardsmith.models.question import QuestionSource
from cardsmith.pipeline.coordinator import IngestionPipeline
from cardsmith.utils.errors import ConfigurationError
from cardsmith.utils.logging import get_logger


class SourceSyncResult(BaseModel):
    """One source paired with the outcome of its ingestion run."""

    model_config = ConfigDict(frozen=True)

    source: QuestionSource
    outcome: ProcessingOutcome


class SyncTotals(BaseModel):
    """Aggregate counts over a sync run."""

    model_config = ConfigDict(frozen=True)

    sources: int = 0
    succeeded: int = 0
    failed: int = 0
    inserted: int = 0
    updated: int = 0
    total: int = 0


def calculate_totals(results: Iterable[SourceSyncResult]) -> SyncTotals:
    """Sum inserted/updated/total question counts over the successful runs.

    A successful run without a store attached contributes its question
    count to ``total`` only.
    """
    sources = succeeded = inserted = updated = total = 0
    for result in results:
        sources += 1
        outcome = result.outcome
        if not outcome.success:
            continue
        succeeded += 1
        if outcome.upsert is not None:
            inserted += outcome.upsert.inserted
            updated += outcome.upsert.updated
            total += outcome.upsert.total
        else:
            total += outcome.question_count
    return SyncTotals(
        sources=sources,
        succeeded=succeeded,
        failed=sources - succeeded,
        inserted=inserted,
        updated=updated,
        total=total,
    )


class SourceSyncService:
    """Runs the pipeline over a list of configured sources."""

    def __init__(self, pipeline: IngestionPipeline, sources: Sequence[QuestionSource]) -> None:
        self._pipeline = pipeline
        self._sources = list(sources)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def sources(self) -> list[QuestionSource]:
        return list(self._sources)

    def select(self, source_ids: Sequence[str] | None = None) -> list[QuestionSource]:
        """Return the sources to sync, in configured order.

        Raises
        ------
        ConfigurationError
            If no sources are configured, or an id in *source_ids* is unknown.
        """
        if not self._sources:
            raise ConfigurationError(message="No question sources configured")
        if not source_ids:
            return list(self._sources)

        known = {source.id for source in self._sources}
        unknown = [sid for sid in source_ids if sid not in known]
        if unknown:
            raise ConfigurationError(
                message=f"Unknown source id(s): {', '.join(unknown)}. "
                f"Available: {', '.join(sorted(known))}"
            )
        wanted = set(source_ids)
        return [source for source in self._sources if source.id in wanted]

    async def sync_all(self, source_ids: Sequence[str] | None = None) -> list[SourceSyncResult]:
        """Process each selected source sequentially.

        A failed source does not stop the run; its outcome is recorded and
        the next source is processed.
        """
        selected = self.select(source_ids)
        results: list[SourceSyncResult] = []

        for position, source in enumerate(selected, start=1):
            self._logger.info(
                "source_sync_start",
                source_id=source.id,
                url=source.url,
                position=position,
                total=len(selected),
            )
            outcome = await self._pipeline.process_origin(source.url, source_name=source.name)
            if outcome.success:
                self._logger.info(
                    "source_sync_complete",
                    source_id=source.id,
                    questions=outcome.question_count,
                    strategy=outcome.strategy.value if outcome.strategy else None,
                )
            else:
                self._logger.warning(
                    "source_sync_failed",
                    source_id=source.id,
                    error=outcome.error,
                    error_kind=outcome.error_kind.value if outcome.error_kind else None,
                )
            results.append(SourceSyncResult(source=source, outcome=outcome))

        totals = calculate_totals(results)
        self._logger.info("sync_complete", **totals.model_dump())
        return results

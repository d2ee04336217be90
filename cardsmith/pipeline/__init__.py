"""Pipeline orchestration: the per-document coordinator and the source sync loop."""

from cardsmith.pipeline.coordinator import IngestionPipeline
from cardsmith.pipeline.sync import (
    SourceSyncResult,
    SourceSyncService,
    SyncTotals,
    calculate_totals,
)

__all__ = [
    "IngestionPipeline",
    "SourceSyncResult",
    "SourceSyncService",
    "SyncTotals",
    "calculate_totals",
]

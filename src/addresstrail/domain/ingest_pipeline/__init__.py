"""Streaming ingestion pipeline: tokenize, normalize, deduplicate, commit."""

from __future__ import annotations

from addresstrail.domain.ingest_pipeline.batching import BatchUpsertExecutor
from addresstrail.domain.ingest_pipeline.context import NormalizedRecord
from addresstrail.domain.ingest_pipeline.deduplication import (
    DedupAction,
    DedupDecision,
    DeduplicationEngine,
    HistoryChange,
    HistoryCounters,
)
from addresstrail.domain.ingest_pipeline.ingest_ports import IngestRepositories, IngestUnitOfWork
from addresstrail.domain.ingest_pipeline.orchestrator import IngestionPipeline, Normalizer
from addresstrail.domain.ingest_pipeline.progress import (
    ErrorKind,
    IngestPhase,
    IngestSummary,
    PhaseEvent,
    PhaseStatus,
    ProgressTracker,
    RecordRange,
    StoreTotals,
)
from addresstrail.domain.ingest_pipeline.resume import plan_count_resume
from addresstrail.domain.ingest_pipeline.tokenizer import (
    ObjectTokenizer,
    TokenizerState,
    iter_object_texts,
)

__all__ = [
    "BatchUpsertExecutor",
    "DedupAction",
    "DedupDecision",
    "DeduplicationEngine",
    "ErrorKind",
    "HistoryChange",
    "HistoryCounters",
    "IngestPhase",
    "IngestRepositories",
    "IngestSummary",
    "IngestUnitOfWork",
    "IngestionPipeline",
    "NormalizedRecord",
    "Normalizer",
    "ObjectTokenizer",
    "PhaseEvent",
    "PhaseStatus",
    "ProgressTracker",
    "RecordRange",
    "StoreTotals",
    "TokenizerState",
    "iter_object_texts",
    "plan_count_resume",
]

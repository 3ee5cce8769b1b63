"""Drive object texts through parsing, normalization, and batched commits."""

from __future__ import annotations

import json
from dataclasses import dataclass
from itertools import islice
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from addresstrail.domain.errors import NormalizationError
from addresstrail.domain.ingest_pipeline.progress import (
    ErrorKind,
    IngestPhase,
    PhaseStatus,
    RecordRange,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from addresstrail.domain.ingest_pipeline.batching import BatchUpsertExecutor
    from addresstrail.domain.ingest_pipeline.context import NormalizedRecord
    from addresstrail.domain.ingest_pipeline.progress import IngestSummary, ProgressTracker

log = getLogger(__name__)


class Normalizer(Protocol):
    """Project one raw registry record onto the domain model."""

    def __call__(self, raw: Mapping[str, Any]) -> NormalizedRecord: ...


def parse_object(text: str) -> dict[str, Any]:
    """Parse one object text; raise ``ValueError`` unless it is a JSON object."""

    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value


@dataclass(slots=True)
class IngestionPipeline:
    """Single-pass pipeline over the object texts of one export.

    Source order is preserved up to the commit. Per-record failures are counted
    on the tracker and never stop the run.
    """

    normalizer: Normalizer
    executor: BatchUpsertExecutor
    tracker: ProgressTracker

    def run(
        self,
        objects: Iterable[str],
        *,
        record_range: RecordRange | None = None,
    ) -> IngestSummary:
        active_range = record_range or RecordRange()
        tracker = self.tracker
        tracker.start(active_range)
        tracker.phase(
            IngestPhase.NORMALIZING,
            PhaseStatus.STARTING,
            f"Normalizing records from index {active_range.start}",
        )

        # islice stops at the range end, so anything outside the range lies below start
        for index, text in enumerate(islice(objects, active_range.end)):
            tracker.record_seen()
            if index not in active_range:
                tracker.record_skipped()
                continue
            tracker.record_processed()
            record = self._normalize(index, text)
            if record is not None:
                self.executor.add(record)

        tracker.phase(
            IngestPhase.TOKENIZING,
            PhaseStatus.COMPLETED,
            f"Read {tracker.processed} records in range {active_range}",
        )
        rejected = tracker.errors(ErrorKind.TOKENIZATION) + tracker.errors(ErrorKind.NORMALIZATION)
        tracker.phase(
            IngestPhase.NORMALIZING,
            PhaseStatus.COMPLETED,
            f"Normalized {tracker.processed - rejected} of {tracker.processed} records",
            rejected=rejected,
        )
        self.executor.flush()
        tracker.phase(
            IngestPhase.COMMITTING,
            PhaseStatus.COMPLETED,
            f"Committed {tracker.saved} records",
        )
        self._verify()
        return tracker.finish()

    def _normalize(self, index: int, text: str) -> NormalizedRecord | None:
        try:
            raw = parse_object(text)
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError
            log.warning("Skipping record %s: unparseable object (%s)", index, exc)
            self.tracker.record_error(ErrorKind.TOKENIZATION)
            return None

        try:
            return self.normalizer(raw)
        except NormalizationError as exc:
            log.warning("Skipping record %s: %s", index, exc)
            self.tracker.record_error(ErrorKind.NORMALIZATION)
            return None

    def _verify(self) -> None:
        tracker = self.tracker
        tracker.phase(IngestPhase.VERIFYING, PhaseStatus.STARTING, "Counting stored rows")
        try:
            totals = self.executor.store_totals()
        except Exception:
            log.exception("Could not read store totals")
            tracker.phase(IngestPhase.VERIFYING, PhaseStatus.ERROR, "Store totals unavailable")
            return
        tracker.record_store_totals(totals)
        tracker.phase(
            IngestPhase.VERIFYING,
            PhaseStatus.COMPLETED,
            f"Store holds {totals.companies} companies and {totals.history_rows} history rows",
            companies=totals.companies,
            history_rows=totals.history_rows,
        )

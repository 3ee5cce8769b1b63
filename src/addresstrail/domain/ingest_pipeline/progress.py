"""Per-invocation progress accounting for an ingestion run."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from addresstrail.domain.ingest_pipeline.deduplication import HistoryCounters

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)


class IngestPhase(StrEnum):
    TOKENIZING = "tokenizing"
    NORMALIZING = "normalizing"
    COMMITTING = "committing"
    VERIFYING = "verifying"


class PhaseStatus(StrEnum):
    STARTING = "starting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class ErrorKind(StrEnum):
    TOKENIZATION = "tokenization"
    NORMALIZATION = "normalization"
    COMMIT = "commit"


@dataclass(frozen=True, slots=True)
class PhaseEvent:
    phase: IngestPhase
    status: PhaseStatus
    message: str
    timestamp: datetime
    data: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RecordRange:
    """Half-open ``[start, end)`` range over the record index of the export."""

    start: int = 0
    end: int | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"Range start must be non-negative, got {self.start}")
        if self.end is not None and self.end <= self.start:
            raise ValueError(f"Range end ({self.end}) must be greater than start ({self.start})")

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, int):
            return False
        return index >= self.start and (self.end is None or index < self.end)

    def __str__(self) -> str:
        return f"[{self.start}, {'end' if self.end is None else self.end})"


@dataclass(frozen=True, slots=True)
class StoreTotals:
    companies: int
    history_rows: int


@dataclass(frozen=True, slots=True, kw_only=True)
class IngestSummary:
    record_range: RecordRange
    seen: int
    skipped: int
    processed: int
    saved: int
    errors_by_kind: Mapping[ErrorKind, int]
    history: HistoryCounters
    elapsed_seconds: float
    events: tuple[PhaseEvent, ...] = ()
    store_totals: StoreTotals | None = None

    @property
    def errors(self) -> int:
        return sum(self.errors_by_kind.values())

    @property
    def throughput(self) -> float:
        """Processed records per second."""

        if self.elapsed_seconds <= 0:
            return float(self.processed)
        return self.processed / self.elapsed_seconds

    @property
    def success_rate(self) -> float:
        """Saved records as a percentage of processed records."""

        if self.processed == 0:
            return 0.0
        return 100.0 * self.saved / self.processed


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProgressTracker:
    """Counts and phase events for exactly one run.

    Lifecycle: ``start`` once, record while running, ``finish`` once. Recording
    before ``start`` or after ``finish`` raises ``RuntimeError``.
    """

    def __init__(
        self,
        *,
        report_every: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.report_every = report_every
        self._clock = clock
        self._now = now
        self._record_range = RecordRange()
        self._started_at: float | None = None
        self._summary: IngestSummary | None = None
        self._seen = 0
        self._skipped = 0
        self._processed = 0
        self._saved = 0
        self._errors: Counter[ErrorKind] = Counter()
        self._history = HistoryCounters()
        self._events: list[PhaseEvent] = []
        self._store_totals: StoreTotals | None = None

    # lifecycle -------------------------------------------------------------

    def start(self, record_range: RecordRange | None = None) -> None:
        if self._started_at is not None:
            raise RuntimeError("Progress tracker already started")
        self._record_range = record_range or RecordRange()
        self._started_at = self._clock()
        self.phase(
            IngestPhase.TOKENIZING,
            PhaseStatus.STARTING,
            f"Reading records {self._record_range}",
            start=self._record_range.start,
            end=self._record_range.end,
        )

    def finish(self) -> IngestSummary:
        self._ensure_running()
        assert self._started_at is not None
        summary = IngestSummary(
            record_range=self._record_range,
            seen=self._seen,
            skipped=self._skipped,
            processed=self._processed,
            saved=self._saved,
            errors_by_kind=dict(self._errors),
            history=HistoryCounters(
                appended=self._history.appended,
                superseded=self._history.superseded,
                ignored=self._history.ignored,
            ),
            elapsed_seconds=self._clock() - self._started_at,
            events=tuple(self._events),
            store_totals=self._store_totals,
        )
        self._summary = summary
        return summary

    @property
    def running(self) -> bool:
        return self._started_at is not None and self._summary is None

    @property
    def record_range(self) -> RecordRange:
        return self._record_range

    @property
    def events(self) -> tuple[PhaseEvent, ...]:
        return tuple(self._events)

    # recording -------------------------------------------------------------

    def phase(
        self,
        phase: IngestPhase,
        status: PhaseStatus,
        message: str,
        **data: object,
    ) -> PhaseEvent:
        self._ensure_running()
        event = PhaseEvent(
            phase=phase,
            status=status,
            message=message,
            timestamp=self._now(),
            data=data,
        )
        self._events.append(event)
        level = log.error if status is PhaseStatus.ERROR else log.info
        level(
            "[%s] %s: %s (processed=%s, saved=%s, errors=%s)",
            phase,
            status,
            message,
            self._processed,
            self._saved,
            self._errors.total(),
        )
        return event

    def record_seen(self) -> None:
        self._ensure_running()
        self._seen += 1

    def record_skipped(self) -> None:
        self._ensure_running()
        self._skipped += 1

    def record_processed(self) -> None:
        self._ensure_running()
        self._processed += 1
        if self.report_every > 0 and self._processed % self.report_every == 0:
            self.phase(
                IngestPhase.NORMALIZING,
                PhaseStatus.IN_PROGRESS,
                f"{self._processed} records processed",
            )

    def record_saved(self, count: int) -> None:
        self._ensure_running()
        self._saved += count

    def record_error(self, kind: ErrorKind, *, count: int = 1) -> None:
        self._ensure_running()
        self._errors[kind] += count

    def record_history(self, counters: HistoryCounters) -> None:
        self._ensure_running()
        self._history.merge(counters)

    def record_store_totals(self, totals: StoreTotals) -> None:
        self._ensure_running()
        self._store_totals = totals

    @property
    def saved(self) -> int:
        return self._saved

    @property
    def processed(self) -> int:
        return self._processed

    def errors(self, kind: ErrorKind | None = None) -> int:
        if kind is None:
            return self._errors.total()
        return self._errors[kind]

    def _ensure_running(self) -> None:
        if self._started_at is None:
            raise RuntimeError("Progress tracker not started")
        if self._summary is not None:
            raise RuntimeError("Progress tracker already finished")

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from addresstrail.domain.ingest_pipeline.deduplication import HistoryCounters
from addresstrail.domain.ingest_pipeline.progress import (
    ErrorKind,
    IngestPhase,
    PhaseStatus,
    ProgressTracker,
    RecordRange,
)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_record_range_bounds() -> None:
    bounded = RecordRange(100, 200)

    assert 99 not in bounded
    assert 100 in bounded
    assert 199 in bounded
    assert 200 not in bounded
    assert 10**9 in RecordRange(5)
    assert str(bounded) == "[100, 200)"


@pytest.mark.parametrize(("start", "end"), [(-1, None), (5, 5), (10, 3)])
def test_record_range_rejects_invalid_bounds(start: int, end: int | None) -> None:
    with pytest.raises(ValueError, match="Range"):
        RecordRange(start, end)


def test_summary_accounts_for_every_counter() -> None:
    clock = _FakeClock()
    tracker = ProgressTracker(clock=clock, now=lambda: datetime(2026, 1, 1, tzinfo=UTC))
    tracker.start(RecordRange(0, 10))
    for _ in range(4):
        tracker.record_seen()
        tracker.record_processed()
    tracker.record_saved(3)
    tracker.record_error(ErrorKind.NORMALIZATION)
    tracker.record_history(HistoryCounters(appended=3))
    clock.now = 102.0

    summary = tracker.finish()

    assert summary.processed == 4
    assert summary.saved == 3
    assert summary.errors == 1
    assert summary.errors_by_kind == {ErrorKind.NORMALIZATION: 1}
    assert summary.history.appended == 3
    assert summary.elapsed_seconds == pytest.approx(2.0)
    assert summary.throughput == pytest.approx(2.0)
    assert summary.success_rate == pytest.approx(75.0)
    assert summary.events[0].phase is IngestPhase.TOKENIZING
    assert summary.events[0].status is PhaseStatus.STARTING


def test_tracker_lifecycle_is_enforced() -> None:
    tracker = ProgressTracker()
    with pytest.raises(RuntimeError, match="not started"):
        tracker.record_seen()

    tracker.start()
    with pytest.raises(RuntimeError, match="already started"):
        tracker.start()
    tracker.finish()

    with pytest.raises(RuntimeError, match="already finished"):
        tracker.record_saved(1)
    with pytest.raises(RuntimeError, match="already finished"):
        tracker.finish()


def test_periodic_progress_events() -> None:
    tracker = ProgressTracker(report_every=2)
    tracker.start()
    for _ in range(5):
        tracker.record_processed()

    in_progress = [event for event in tracker.events if event.status is PhaseStatus.IN_PROGRESS]

    assert [event.message for event in in_progress] == [
        "2 records processed",
        "4 records processed",
    ]


def test_empty_run_has_zero_success_rate() -> None:
    tracker = ProgressTracker()
    tracker.start()

    summary = tracker.finish()

    assert summary.success_rate == 0.0
    assert summary.errors == 0

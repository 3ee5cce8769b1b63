"""Commit normalized records to the store in fixed-size units of work."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from addresstrail.domain.ingest_pipeline.deduplication import (
    DeduplicationEngine,
    HistoryCounters,
)
from addresstrail.domain.ingest_pipeline.progress import (
    ErrorKind,
    IngestPhase,
    PhaseStatus,
    StoreTotals,
)
from addresstrail.domain.model import JurisdictionPostalCode

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from addresstrail.domain.ingest_pipeline.context import NormalizedRecord
    from addresstrail.domain.ingest_pipeline.ingest_ports import (
        IngestRepositories,
        IngestUnitOfWork,
    )
    from addresstrail.domain.ingest_pipeline.progress import ProgressTracker
    from addresstrail.domain.model import AddressHistoryRecord, AddressRole, Company

log = getLogger(__name__)

DEFAULT_BATCH_SIZE: Final[int] = 1000

type UnitOfWorkFactory = Callable[[], IngestUnitOfWork]


class BatchUpsertExecutor:
    """Buffer normalized records and upsert them one batch per unit of work.

    Current history rows are read at the start of every batch and kept up to date
    in memory while the batch is applied, so replaying a batch (or the whole
    export) adds no rows for addresses that did not change. A batch that fails
    is rolled back, counted as commit errors, and the run continues.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        tracker: ProgressTracker,
        batch_size: int = DEFAULT_BATCH_SIZE,
        engine: DeduplicationEngine | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.unit_of_work_factory = unit_of_work_factory
        self.tracker = tracker
        self.batch_size = batch_size
        self.engine = engine or DeduplicationEngine()
        self._pending: list[NormalizedRecord] = []
        self._batches = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def add(self, record: NormalizedRecord) -> None:
        self._pending.append(record)
        if len(self._pending) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """Commit whatever is buffered (no-op when empty)."""

        if not self._pending:
            return
        batch, self._pending = self._pending, []
        self._batches += 1
        try:
            counters = self._commit(batch)
        except Exception:
            log.exception(
                "Batch %s failed; rolled back %s records", self._batches, len(batch)
            )
            self.tracker.record_error(ErrorKind.COMMIT, count=len(batch))
            self.tracker.phase(
                IngestPhase.COMMITTING,
                PhaseStatus.ERROR,
                f"Batch {self._batches} of {len(batch)} records failed",
                batch=self._batches,
                size=len(batch),
            )
            return

        self.tracker.record_saved(len(batch))
        self.tracker.record_history(counters)
        self.tracker.phase(
            IngestPhase.COMMITTING,
            PhaseStatus.IN_PROGRESS,
            f"Batch {self._batches} committed ({len(batch)} records)",
            batch=self._batches,
            size=len(batch),
            appended=counters.appended,
            superseded=counters.superseded,
            ignored=counters.ignored,
        )

    def store_totals(self) -> StoreTotals:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            return StoreTotals(
                companies=repositories.companies.count(),
                history_rows=repositories.address_history.count(),
            )

    def _commit(self, batch: Sequence[NormalizedRecord]) -> HistoryCounters:
        counters = HistoryCounters()
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            companies = repositories.companies.upsert_many(
                [record.company for record in batch]
            )
            current = dict(
                repositories.address_history.current_for(
                    {record.organization_number for record in batch}
                )
            )
            postal_codes: dict[tuple[str, str], JurisdictionPostalCode] = {}

            for record in batch:
                company = companies[record.organization_number]
                self._merge_history(record, company, current, repositories, counters)
                for snapshot in record.snapshots:
                    entry = JurisdictionPostalCode.from_snapshot(snapshot)
                    if entry is not None:
                        postal_codes[entry.key] = entry

            repositories.postal_codes.ensure(postal_codes.values())
            uow.commit()
        return counters

    def _merge_history(
        self,
        record: NormalizedRecord,
        company: Company,
        current: dict[tuple[str, AddressRole], AddressHistoryRecord],
        repositories: IngestRepositories,
        counters: HistoryCounters,
    ) -> None:
        for snapshot in record.snapshots:
            key = (snapshot.organization_number, snapshot.role)
            decision = self.engine.decide(current.get(key), snapshot)
            change = self.engine.changes_for(decision, company_id=company.id)
            if change.closing is not None and change.closed_on is not None:
                repositories.address_history.close(change.closing, change.closed_on)
            if change.opened is not None:
                repositories.address_history.add(change.opened)
                current[key] = change.opened
            counters.record(decision.action)

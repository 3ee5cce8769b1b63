"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from alembic.util import CommandError
from sqlalchemy.exc import SQLAlchemyError

from addresstrail.adapters.brreg import (
    RegistryEntityTranslator,
    download_export,
    open_export,
    organization_number_of,
)
from addresstrail.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    is_started,
    startup,
)
from addresstrail.config import get_ingest_config, get_storage_config
from addresstrail.domain.errors import InputFileMissingError, StoreUnavailableError
from addresstrail.domain.history_cleanup import CleanupReport, cleanup_address_history
from addresstrail.domain.ingest_pipeline import (
    BatchUpsertExecutor,
    IngestionPipeline,
    IngestSummary,
    ProgressTracker,
    RecordRange,
    iter_object_texts,
    plan_count_resume,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from addresstrail.adapters.brreg import DownloadResult
    from addresstrail.config import RegistryConfig
    from addresstrail.domain.ingest_pipeline import IngestUnitOfWork, Normalizer

type UnitOfWorkFactory = Callable[[], IngestUnitOfWork]

DOWNLOAD_FILENAME = "enheter_alle.json.gz"

log = getLogger(__name__)


def _ensure_store() -> UnitOfWorkFactory:
    if not is_started():
        try:
            startup()
        except (SQLAlchemyError, CommandError, OSError) as exc:
            raise StoreUnavailableError(f"Could not initialise the store: {exc}") from exc
    return SqlAlchemyIngestUnitOfWork


def _plan_resume(
    path: Path,
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    end: int | None,
    chunk_size: int,
) -> RecordRange:
    with unit_of_work_factory() as uow, open_export(path) as stream:
        companies = uow.repositories.companies
        return plan_count_resume(
            iter_object_texts(stream, chunk_size=chunk_size),
            stored_companies=companies.count(),
            identify=organization_number_of,
            exists=companies.exists,
            end=end,
        )


def ingest_registry_export(
    *,
    input_path: Path | None = None,
    record_range: RecordRange | None = None,
    batch_size: int | None = None,
    resume_from_store: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    normalizer: Normalizer | None = None,
) -> IngestSummary:
    """Stream one registry export into the company and address history tables."""

    config = get_ingest_config()
    path = input_path or config.export_path
    if not path.is_file():
        raise InputFileMissingError(f"Export file not found: {path}")

    effective_uow = unit_of_work_factory or _ensure_store()
    effective_batch_size = batch_size or config.batch_size
    effective_range = record_range or RecordRange()
    if resume_from_store:
        if effective_range.start:
            raise ValueError("Count-based resume cannot be combined with an explicit start")
        effective_range = _plan_resume(
            path, effective_uow, end=effective_range.end, chunk_size=config.chunk_size
        )

    log.info(
        "Starting registry ingest: file=%s, range=%s, batch_size=%s",
        path,
        effective_range,
        effective_batch_size,
    )

    tracker = ProgressTracker()
    pipeline = IngestionPipeline(
        normalizer=normalizer or RegistryEntityTranslator(),
        executor=BatchUpsertExecutor(
            effective_uow, tracker=tracker, batch_size=effective_batch_size
        ),
        tracker=tracker,
    )
    with open_export(path) as stream:
        summary = pipeline.run(
            iter_object_texts(stream, chunk_size=config.chunk_size),
            record_range=effective_range,
        )

    log.info(
        "Finished registry ingest: processed=%s, saved=%s, errors=%s, skipped=%s, "
        "elapsed=%.1fs, rate=%.0f records/s, success=%.1f%%",
        summary.processed,
        summary.saved,
        summary.errors,
        summary.skipped,
        summary.elapsed_seconds,
        summary.throughput,
        summary.success_rate,
    )
    log.info(
        "Address history: appended=%s, superseded=%s, unchanged=%s",
        summary.history.appended,
        summary.history.superseded,
        summary.history.ignored,
    )
    end = effective_range.end
    if end is not None and summary.seen >= end:
        log.info("Next range: %s %s", end, end + (end - effective_range.start))
    return summary


def download_registry_export(
    *,
    output: Path | None = None,
    config: RegistryConfig | None = None,
) -> DownloadResult:
    """Fetch the registry's bulk export into the data directory (or ``output``)."""

    destination = output or get_storage_config().ensure_data_dir() / DOWNLOAD_FILENAME
    log.info("Starting registry export download: destination=%s", destination)
    return download_export(destination, config=config)


def clean_address_history(
    *,
    jurisdiction_code: str | None = None,
    apply: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CleanupReport:
    """Report duplicate address history rows; delete them only when ``apply`` is set."""

    effective_uow = unit_of_work_factory or _ensure_store()
    log.info(
        "Starting address history cleanup: jurisdiction=%s, apply=%s",
        jurisdiction_code or "all",
        apply,
    )
    report = cleanup_address_history(
        effective_uow, jurisdiction_code=jurisdiction_code, dry_run=not apply
    )
    log.info(
        "Finished address history cleanup: examined=%s, groups=%s, duplicates=%s, deleted=%s",
        report.rows_examined,
        report.duplicate_groups,
        report.duplicate_rows,
        report.deleted,
    )
    return report


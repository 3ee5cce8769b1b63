from __future__ import annotations

import io
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from addresstrail.domain.ingest_pipeline import (
    BatchUpsertExecutor,
    ErrorKind,
    IngestionPipeline,
    IngestPhase,
    PhaseStatus,
    ProgressTracker,
    RecordRange,
    iter_object_texts,
)
from addresstrail.domain.model import AddressRole, JurisdictionPostalCode
from tests.helpers.registry_records import make_address, make_entities, make_entity, render_export

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Any

    from addresstrail.adapters.brreg import RegistryEntityTranslator
    from addresstrail.adapters.sqlalchemy.unit_of_work import SqlAlchemyIngestUnitOfWork
    from addresstrail.domain.ingest_pipeline import IngestSummary

    type UowFactory = Callable[[], SqlAlchemyIngestUnitOfWork]


def _run(
    records: Sequence[dict[str, Any] | str],
    uow_factory: UowFactory,
    translator: RegistryEntityTranslator,
    *,
    record_range: RecordRange | None = None,
    batch_size: int = 100,
) -> IngestSummary:
    tracker = ProgressTracker()
    pipeline = IngestionPipeline(
        normalizer=translator,
        executor=BatchUpsertExecutor(uow_factory, tracker=tracker, batch_size=batch_size),
        tracker=tracker,
    )
    objects = iter_object_texts(io.StringIO(render_export(records)), chunk_size=512)
    return pipeline.run(objects, record_range=record_range)


def _counts(uow_factory: UowFactory) -> tuple[int, int]:
    with uow_factory() as uow:
        return uow.repositories.companies.count(), uow.repositories.address_history.count()


def test_invalid_record_is_counted_and_skipped(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records: list[dict[str, Any] | str] = list(make_entities(999))
    records.insert(500, make_entity(organisasjonsnummer=""))

    summary = _run(records, sqlite_unit_of_work, translator)

    assert summary.processed == 1000
    assert summary.saved == 999
    assert summary.errors == 1
    assert summary.errors_by_kind == {ErrorKind.NORMALIZATION: 1}
    assert summary.success_rate == pytest.approx(99.9)
    assert _counts(sqlite_unit_of_work) == (999, 999)
    assert summary.store_totals is not None
    assert summary.store_totals.companies == 999


def test_unparseable_object_is_a_tokenization_error(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = [make_entity("911111111"), '{"organisasjonsnummer": }', make_entity("922222222")]

    summary = _run(records, sqlite_unit_of_work, translator)

    assert summary.saved == 2
    assert summary.errors_by_kind == {ErrorKind.TOKENIZATION: 1}


def test_range_processes_exactly_the_requested_records(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = make_entities(1000)

    summary = _run(records, sqlite_unit_of_work, translator, record_range=RecordRange(100, 200))

    assert summary.processed == 100
    assert summary.skipped == 100
    assert summary.seen == 200
    assert summary.saved == 100
    with sqlite_unit_of_work() as uow:
        companies = uow.repositories.companies
        assert companies.count() == 100
        assert companies.exists("910000100")
        assert companies.exists("910000199")
        assert not companies.exists("910000099")
        assert not companies.exists("910000200")


def test_range_past_end_of_input_stops_cleanly(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    summary = _run(
        make_entities(10), sqlite_unit_of_work, translator, record_range=RecordRange(5, 50)
    )

    assert summary.processed == 5
    assert summary.saved == 5


def test_reingesting_the_same_export_changes_nothing(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = make_entities(120)
    records[0]["postadresse"] = make_address("Postboks 12", postal_code="0101")

    first = _run(records, sqlite_unit_of_work, translator, batch_size=50)
    after_first = _counts(sqlite_unit_of_work)
    second = _run(records, sqlite_unit_of_work, translator, batch_size=50)

    assert after_first == (120, 121)
    assert _counts(sqlite_unit_of_work) == after_first
    assert first.history.appended == 121
    assert second.history.appended == 0
    assert second.history.superseded == 0
    assert second.history.ignored == 121


def test_moved_company_supersedes_its_current_address(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    before = make_entity(business=make_address("Strandgata 1", postal_code="4950", city="RISØR"))
    after = make_entity(business=make_address("Storgata 1", postal_code="0180", city="OSLO"))

    _run([before], sqlite_unit_of_work, translator)
    summary = _run([after], sqlite_unit_of_work, translator)

    assert summary.history.superseded == 1
    with sqlite_unit_of_work() as uow:
        rows = uow.repositories.address_history.history_for("912345678")
        company = uow.repositories.companies.get_many(["912345678"])["912345678"]

    assert [(row.postal_code, row.is_current) for row in rows] == [("0180", True), ("4950", False)]
    newest, oldest = rows
    # incorporation date predates the open row, so the move is dated by ingestion
    assert newest.valid_from == date(2026, 10, 19)
    assert oldest.valid_from == date(2015, 3, 2)
    assert oldest.valid_to == date(2026, 10, 19)
    assert all(row.role is AddressRole.BUSINESS for row in rows)
    assert company.business_postal_code == "0180"
    assert company.business_city == "OSLO"


def test_move_within_one_batch_keeps_a_single_current_row(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = [
        make_entity(business=make_address(postal_code="4950")),
        make_entity(business=make_address(postal_code="0180"), incorporated="2020-01-01"),
    ]

    summary = _run(records, sqlite_unit_of_work, translator)

    assert summary.saved == 2
    assert (summary.history.appended, summary.history.superseded) == (1, 1)
    with sqlite_unit_of_work() as uow:
        rows = uow.repositories.address_history.history_for("912345678")
    assert [row.is_current for row in rows].count(True) == 1


def test_postal_codes_are_collected_per_jurisdiction(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = [
        make_entity("911111111", business=make_address(postal_code="0180")),
        make_entity("922222222", business=make_address(postal_code="0180")),
        make_entity("933333333", business=make_address(postal_code="0150")),
    ]

    _run(records, sqlite_unit_of_work, translator)
    _run(records, sqlite_unit_of_work, translator)

    with sqlite_unit_of_work() as uow:
        stored = uow.session.execute(select(JurisdictionPostalCode)).scalars().all()

    assert sorted(entry.key for entry in stored) == [("0301", "0150"), ("0301", "0180")]
    assert {entry.city for entry in stored} == {"OSLO"}


def test_phase_events_follow_the_run(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    summary = _run(make_entities(3), sqlite_unit_of_work, translator)

    completed = [
        event.phase for event in summary.events if event.status is PhaseStatus.COMPLETED
    ]
    assert completed == [
        IngestPhase.TOKENIZING,
        IngestPhase.NORMALIZING,
        IngestPhase.COMMITTING,
        IngestPhase.VERIFYING,
    ]
    normalizing = [event for event in summary.events if event.phase is IngestPhase.NORMALIZING]
    assert [event.status for event in normalizing] == [
        PhaseStatus.STARTING,
        PhaseStatus.COMPLETED,
    ]
    assert normalizing[-1].message == "Normalized 3 of 3 records"


def test_records_with_odd_optional_values_are_still_saved(
    sqlite_unit_of_work: UowFactory, translator: RegistryEntityTranslator
) -> None:
    records = [
        make_entity("911111111", antallAnsatte=-1),
        make_entity("922222222", stiftelsesdato="ukjent"),
        make_entity("933333333", business=make_address(postal_code=None) | {"postnummer": 180}),
    ]

    summary = _run(records, sqlite_unit_of_work, translator)

    assert summary.saved == 3
    assert summary.errors == 0
    with sqlite_unit_of_work() as uow:
        current = uow.repositories.address_history.current_for(["933333333"])
    assert current[("933333333", AddressRole.BUSINESS)].postal_code == "180"

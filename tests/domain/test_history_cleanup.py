from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from addresstrail.domain.history_cleanup import (
    cleanup_address_history,
    find_duplicate_groups,
    summarize_patterns,
)
from addresstrail.domain.model import AddressHistoryRecord, AddressRole, Company, CompanyStatus
from tests.helpers.registry_records import INGESTED_AT

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from addresstrail.adapters.sqlalchemy.unit_of_work import SqlAlchemyIngestUnitOfWork


def _company(organization_number: str) -> Company:
    return Company(
        organization_number=organization_number,
        name=f"Selskap {organization_number}",
        status=CompanyStatus.ACTIVE,
        last_updated=INGESTED_AT,
    )


def _row(
    company_id: UUID,
    organization_number: str,
    *,
    postal_code: str = "0180",
    jurisdiction_code: str = "0301",
    valid_from: date = date(2015, 3, 2),
    closed: bool = True,
    created_offset: int = 0,
) -> AddressHistoryRecord:
    row = AddressHistoryRecord(
        company_id=company_id,
        organization_number=organization_number,
        role=AddressRole.BUSINESS,
        address_line="Storgata 1",
        postal_code=postal_code,
        city="OSLO",
        jurisdiction_code=jurisdiction_code,
        valid_from=valid_from,
        created_at=datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=created_offset),
    )
    if closed:
        row.close(date(2020, 1, 1))
    return row


def test_groups_keep_the_oldest_row() -> None:
    company = _company("912345678")
    newest = _row(company.id, "912345678", created_offset=5)
    oldest = _row(company.id, "912345678", created_offset=0)
    other_interval = _row(company.id, "912345678", valid_from=date(2018, 1, 1))
    current = _row(company.id, "912345678", closed=False)

    groups = find_duplicate_groups([newest, oldest, other_interval, current])

    assert len(groups) == 1
    assert groups[0].keep is oldest
    assert groups[0].duplicates == (newest,)


def test_patterns_are_ranked_by_occurrence() -> None:
    company = _company("912345678")
    rows = [_row(company.id, "912345678", created_offset=offset) for offset in range(3)]
    rows += [
        _row(company.id, "912345678", postal_code="4950", created_offset=offset)
        for offset in range(2)
    ]

    patterns = summarize_patterns(find_duplicate_groups(rows))

    assert [(pattern.postal_code, pattern.occurrences) for pattern in patterns] == [
        ("0180", 2),
        ("4950", 1),
    ]
    assert patterns[0].address_line == "storgata 1"


@pytest.fixture
def seeded_history(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> Callable[[], SqlAlchemyIngestUnitOfWork]:
    with sqlite_unit_of_work() as uow:
        oslo = _company("911111111")
        risor = _company("922222222")
        uow.repositories.companies.add(oslo)
        uow.repositories.companies.add(risor)
        history = uow.repositories.address_history
        for offset in range(3):
            history.add(_row(oslo.id, "911111111", created_offset=offset))
        for offset in range(2):
            history.add(
                _row(
                    risor.id,
                    "922222222",
                    postal_code="4950",
                    jurisdiction_code="4201",
                    created_offset=offset,
                )
            )
        history.add(_row(oslo.id, "911111111", postal_code="0150", closed=False))
        uow.commit()
    return sqlite_unit_of_work


def test_dry_run_reports_without_deleting(
    seeded_history: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> None:
    report = cleanup_address_history(seeded_history)

    assert report.dry_run
    assert report.rows_examined == 6
    assert report.duplicate_groups == 2
    assert report.duplicate_rows == 3
    assert report.deleted == 0
    with seeded_history() as uow:
        assert uow.repositories.address_history.count() == 6


def test_apply_deletes_duplicates_in_batches(
    seeded_history: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> None:
    report = cleanup_address_history(seeded_history, dry_run=False, delete_batch_size=2)

    assert report.deleted == 3
    with seeded_history() as uow:
        history = uow.repositories.address_history
        assert history.count() == 3
        assert len(history.history_for("911111111")) == 2
        assert len(history.history_for("922222222")) == 1

    again = cleanup_address_history(seeded_history, dry_run=False)
    assert again.duplicate_rows == 0


def test_jurisdiction_filter_limits_the_scan(
    seeded_history: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> None:
    report = cleanup_address_history(seeded_history, jurisdiction_code="4201", dry_run=False)

    assert report.rows_examined == 2
    assert report.deleted == 1
    with seeded_history() as uow:
        assert len(uow.repositories.address_history.history_for("911111111")) == 4


def test_delete_batch_size_must_be_positive(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> None:
    with pytest.raises(ValueError, match="positive"):
        cleanup_address_history(sqlite_unit_of_work, delete_batch_size=0)

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import IntegrityError

from addresstrail.adapters.sqlalchemy import (
    SqlAlchemyAddressHistoryRepository,
    SqlAlchemyCompanyRepository,
    SqlAlchemyJurisdictionPostalCodeRepository,
)
from addresstrail.domain.model import (
    AddressHistoryRecord,
    AddressRole,
    Company,
    CompanyStatus,
    JurisdictionPostalCode,
)
from tests.helpers.registry_records import INGESTED_AT

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _company(organization_number: str = "912345678", *, name: str = "Fjordkraft AS") -> Company:
    return Company(
        organization_number=organization_number,
        name=name,
        status=CompanyStatus.ACTIVE,
        business_postal_code="0180",
        last_updated=INGESTED_AT,
    )


def _open_row(company: Company, postal_code: str = "0180") -> AddressHistoryRecord:
    return AddressHistoryRecord(
        company_id=company.id,
        organization_number=company.organization_number,
        role=AddressRole.BUSINESS,
        postal_code=postal_code,
        valid_from=date(2015, 3, 2),
    )


def test_upsert_many_inserts_then_overwrites(sqlite_session: Session) -> None:
    repo = SqlAlchemyCompanyRepository(sqlite_session)
    original = _company()
    repo.upsert_many([original])
    sqlite_session.commit()

    renamed = _company(name="Fjordkraft Holding AS")
    renamed.status = CompanyStatus.BANKRUPT
    stored = repo.upsert_many([renamed])
    sqlite_session.commit()

    assert stored["912345678"] is original
    assert original.name == "Fjordkraft Holding AS"
    assert original.status is CompanyStatus.BANKRUPT
    assert original.id != renamed.id
    assert repo.count() == 1
    assert repo.exists("912345678")
    assert not repo.exists("987654321")


def test_update_from_rejects_other_company() -> None:
    with pytest.raises(ValueError, match="Cannot update company"):
        _company("912345678").update_from(_company("987654321"))


def test_partial_unique_index_allows_one_current_row(sqlite_session: Session) -> None:
    company = _company()
    SqlAlchemyCompanyRepository(sqlite_session).add(company)
    history = SqlAlchemyAddressHistoryRepository(sqlite_session)
    history.add(_open_row(company, "4950"))
    sqlite_session.commit()

    history.add(_open_row(company, "0180"))
    with pytest.raises(IntegrityError):
        sqlite_session.commit()


def test_closing_the_current_row_admits_a_replacement(sqlite_session: Session) -> None:
    company = _company()
    SqlAlchemyCompanyRepository(sqlite_session).add(company)
    history = SqlAlchemyAddressHistoryRepository(sqlite_session)
    first = _open_row(company, "4950")
    history.add(first)
    sqlite_session.commit()

    history.close(first, date(2024, 2, 1))
    history.add(_open_row(company, "0180"))
    sqlite_session.commit()

    current = history.current_for(["912345678"])
    assert current[("912345678", AddressRole.BUSINESS)].postal_code == "0180"
    assert [row.is_current for row in history.history_for("912345678")].count(True) == 1
    assert history.count() == 2


def test_current_for_ignores_unknown_companies(sqlite_session: Session) -> None:
    history = SqlAlchemyAddressHistoryRepository(sqlite_session)

    assert history.current_for([]) == {}
    assert history.current_for(["000000000"]) == {}


def test_postal_code_ensure_inserts_once_and_fills_blanks(sqlite_session: Session) -> None:
    repo = SqlAlchemyJurisdictionPostalCodeRepository(sqlite_session)

    inserted = repo.ensure(
        [JurisdictionPostalCode(jurisdiction_code="0301", postal_code="0180")]
    )
    sqlite_session.commit()
    again = repo.ensure(
        [
            JurisdictionPostalCode(
                jurisdiction_code="0301",
                postal_code="0180",
                jurisdiction_name="OSLO",
                city="OSLO",
            ),
            JurisdictionPostalCode(jurisdiction_code="4201", postal_code="4950"),
        ]
    )
    sqlite_session.commit()

    assert (inserted, again) == (1, 1)
    assert repo.ensure([]) == 0

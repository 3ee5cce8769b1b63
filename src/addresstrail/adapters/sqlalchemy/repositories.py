"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from addresstrail.adapters.sqlalchemy.mappings import (
    company_address_history_table,
    company_table,
    jurisdiction_postal_code_table,
)
from addresstrail.domain.model import (
    AddressHistoryRecord,
    AddressRole,
    Company,
    JurisdictionPostalCode,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence
    from datetime import date

    from sqlalchemy.orm import Session


class SqlAlchemyCompanyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Company) -> None:
        self.session.add(entity)

    def get_many(self, organization_numbers: Collection[str]) -> dict[str, Company]:
        if not organization_numbers:
            return {}
        stmt = select(Company).where(
            company_table.c.organization_number.in_(set(organization_numbers))
        )
        return {
            company.organization_number: company
            for company in self.session.execute(stmt).scalars()
        }

    def upsert_many(self, companies: Sequence[Company]) -> dict[str, Company]:
        stored = self.get_many({company.organization_number for company in companies})
        for company in companies:
            existing = stored.get(company.organization_number)
            if existing is None:
                self.add(company)
                stored[company.organization_number] = company
            else:
                existing.update_from(company)
        self.session.flush()
        return stored

    def exists(self, organization_number: str) -> bool:
        stmt = (
            select(company_table.c.id)
            .where(company_table.c.organization_number == organization_number)
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None

    def count(self) -> int:
        stmt = select(func.count()).select_from(company_table)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyAddressHistoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AddressHistoryRecord) -> None:
        self.session.add(entity)

    def current_for(
        self, organization_numbers: Collection[str]
    ) -> dict[tuple[str, AddressRole], AddressHistoryRecord]:
        if not organization_numbers:
            return {}
        history = company_address_history_table.c
        stmt = select(AddressHistoryRecord).where(
            history.organization_number.in_(set(organization_numbers)),
            history.is_current.is_(True),
        )
        return {
            (record.organization_number, record.role): record
            for record in self.session.execute(stmt).scalars()
        }

    def close(self, record: AddressHistoryRecord, valid_to: date) -> None:
        record.close(valid_to)
        # the partial unique index admits the replacement row only after this update
        self.session.flush()

    def history_for(self, organization_number: str) -> list[AddressHistoryRecord]:
        history = company_address_history_table.c
        stmt = (
            select(AddressHistoryRecord)
            .where(history.organization_number == organization_number)
            .order_by(history.valid_from.desc(), history.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def list_for_cleanup(
        self, *, jurisdiction_code: str | None = None
    ) -> list[AddressHistoryRecord]:
        history = company_address_history_table.c
        stmt = select(AddressHistoryRecord).order_by(
            history.organization_number,
            history.valid_from,
            history.created_at,
        )
        if jurisdiction_code is not None:
            stmt = stmt.where(history.jurisdiction_code == jurisdiction_code)
        return list(self.session.execute(stmt).scalars())

    def remove_many(self, records: Iterable[AddressHistoryRecord]) -> int:
        doomed = list(records)
        if not doomed:
            return 0
        ids = [record.id for record in doomed]
        for record in doomed:
            if record in self.session:
                self.session.expunge(record)
        stmt = delete(company_address_history_table).where(
            company_address_history_table.c.id.in_(ids)
        )
        result = self.session.execute(stmt)
        return result.rowcount

    def count(self) -> int:
        stmt = select(func.count()).select_from(company_address_history_table)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyJurisdictionPostalCodeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def ensure(self, entries: Iterable[JurisdictionPostalCode]) -> int:
        wanted = {entry.key: entry for entry in entries}
        if not wanted:
            return 0
        table = jurisdiction_postal_code_table.c
        stmt = select(JurisdictionPostalCode).where(
            table.jurisdiction_code.in_({code for code, _ in wanted}),
            table.postal_code.in_({postal for _, postal in wanted}),
        )
        known = {entry.key: entry for entry in self.session.execute(stmt).scalars()}

        inserted = 0
        for key, entry in wanted.items():
            existing = known.get(key)
            if existing is None:
                self.session.add(entry)
                inserted += 1
                continue
            existing.jurisdiction_name = entry.jurisdiction_name or existing.jurisdiction_name
            existing.city = entry.city or existing.city
        return inserted

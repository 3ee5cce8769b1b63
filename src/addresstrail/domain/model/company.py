"""Current-state projection of a registered legal entity."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, ClassVar

from addresstrail.domain.model.entity import Entity

if TYPE_CHECKING:
    from datetime import date, datetime

    from addresstrail.domain.model.enums import CompanyStatus


@dataclass(eq=False, kw_only=True)
class Company(Entity):
    """One row per organization number.

    Every re-ingestion overwrites the non-historical fields (last write wins); the
    address history lives in ``AddressHistoryRecord`` rows.
    """

    IDENTITY_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "organization_number"})

    organization_number: str
    name: str | None = None
    legal_form: str | None = None
    status: CompanyStatus
    registration_date: date | None = None
    industry_code: str | None = None
    industry_description: str | None = None

    business_address: str | None = None
    business_postal_code: str | None = None
    business_city: str | None = None

    postal_address: str | None = None
    postal_postal_code: str | None = None
    postal_city: str | None = None

    employee_count: int | None = None
    last_updated: datetime

    def update_from(self, other: Company) -> None:
        """Copy every mutable field of ``other`` onto this company."""

        if other.organization_number != self.organization_number:
            raise ValueError(
                f"Cannot update company {self.organization_number} "
                f"from {other.organization_number}"
            )
        for item in fields(self):
            if item.name in self.IDENTITY_FIELDS:
                continue
            setattr(self, item.name, getattr(other, item.name))

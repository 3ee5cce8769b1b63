"""Address snapshots and the append-only address history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from addresstrail.domain.model.entity import Entity
from addresstrail.domain.model.enums import AddressRole, AsOfSource

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

type DuplicateKey = tuple[str, str, AddressRole, str]

CURRENT = "current"
HISTORICAL = "historical"


def normalize_text(value: str | None) -> str:
    """Lowercase, trim, and collapse internal whitespace; ``None`` becomes ``""``."""

    return " ".join((value or "").lower().split())


def duplicate_key(
    organization_number: str,
    postal_code: str | None,
    role: AddressRole,
    *,
    is_current: bool,
) -> DuplicateKey:
    """Identity of an address observation for deduplication purposes."""

    return (
        normalize_text(organization_number),
        normalize_text(postal_code),
        role,
        CURRENT if is_current else HISTORICAL,
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class AddressSnapshot:
    """One address of one company as observed in one registry record."""

    organization_number: str
    role: AddressRole
    address_line: str | None = None
    postal_code: str | None = None
    city: str | None = None
    jurisdiction_code: str | None = None
    jurisdiction_name: str | None = None
    as_of: date
    as_of_source: AsOfSource
    observed_at: date

    @property
    def low_confidence(self) -> bool:
        return self.as_of_source is AsOfSource.INGESTION_TIME

    @property
    def duplicate_key(self) -> DuplicateKey:
        return duplicate_key(
            self.organization_number, self.postal_code, self.role, is_current=True
        )


@dataclass(eq=False, kw_only=True)
class AddressHistoryRecord(Entity):
    """A validity interval during which a company held one address.

    Rows are never edited after being closed: a change of address closes the
    current row and appends a new one.
    """

    company_id: UUID
    organization_number: str
    role: AddressRole
    address_line: str | None = None
    postal_code: str | None = None
    city: str | None = None
    jurisdiction_code: str | None = None
    jurisdiction_name: str | None = None
    valid_from: date
    valid_to: date | None = None
    is_current: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: AddressSnapshot,
        *,
        company_id: UUID,
        valid_from: date | None = None,
    ) -> AddressHistoryRecord:
        return cls(
            company_id=company_id,
            organization_number=snapshot.organization_number,
            role=snapshot.role,
            address_line=snapshot.address_line,
            postal_code=snapshot.postal_code,
            city=snapshot.city,
            jurisdiction_code=snapshot.jurisdiction_code,
            jurisdiction_name=snapshot.jurisdiction_name,
            valid_from=valid_from or snapshot.as_of,
        )

    def close(self, valid_to: date) -> None:
        if not self.is_current:
            raise ValueError(
                f"Address history row {self.id} for {self.organization_number} is already closed"
            )
        self.valid_to = valid_to
        self.is_current = False

    @property
    def duplicate_key(self) -> DuplicateKey:
        return duplicate_key(
            self.organization_number,
            self.postal_code,
            self.role,
            is_current=self.is_current,
        )


@dataclass(eq=False, kw_only=True)
class JurisdictionPostalCode(Entity):
    """Postal code observed inside a jurisdiction (municipality)."""

    jurisdiction_code: str
    postal_code: str
    jurisdiction_name: str | None = None
    city: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.jurisdiction_code, self.postal_code)

    @classmethod
    def from_snapshot(cls, snapshot: AddressSnapshot) -> JurisdictionPostalCode | None:
        if not snapshot.jurisdiction_code or not snapshot.postal_code:
            return None
        return cls(
            jurisdiction_code=snapshot.jurisdiction_code,
            postal_code=snapshot.postal_code,
            jurisdiction_name=snapshot.jurisdiction_name,
            city=snapshot.city,
        )

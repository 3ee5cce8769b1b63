"""Ports for persisting companies and their address history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from addresstrail.domain.model import (
    AddressHistoryRecord,
    AddressRole,
    Company,
    JurisdictionPostalCode,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence
    from datetime import date


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CompanyRepository(Repository[Company], Protocol):
    """Persistence contract for the current-state company table."""

    def get_many(self, organization_numbers: Collection[str]) -> dict[str, Company]:
        """Return stored companies keyed by organization number."""
        ...

    def upsert_many(self, companies: Sequence[Company]) -> dict[str, Company]:
        """Insert new companies, overwrite known ones (last write wins), flush.

        Returns the stored company for every organization number in ``companies``.
        """
        ...

    def exists(self, organization_number: str) -> bool: ...

    def count(self) -> int: ...


@runtime_checkable
class AddressHistoryRepository(Repository[AddressHistoryRecord], Protocol):
    """Persistence contract for the append-only address history."""

    def current_for(
        self, organization_numbers: Collection[str]
    ) -> Mapping[tuple[str, AddressRole], AddressHistoryRecord]:
        """Return open rows keyed by ``(organization_number, role)``."""
        ...

    def close(self, record: AddressHistoryRecord, valid_to: date) -> None:
        """Close ``record`` and make the change visible before any replacement row."""
        ...

    def history_for(self, organization_number: str) -> list[AddressHistoryRecord]:
        """Return every row for the company, newest validity start first."""
        ...

    def list_for_cleanup(
        self, *, jurisdiction_code: str | None = None
    ) -> list[AddressHistoryRecord]:
        """Return rows ordered oldest first within each organization number."""
        ...

    def remove_many(self, records: Iterable[AddressHistoryRecord]) -> int: ...

    def count(self) -> int: ...


@runtime_checkable
class JurisdictionPostalCodeRepository(Protocol):
    """Persistence contract for the jurisdiction/postal-code index."""

    def ensure(self, entries: Iterable[JurisdictionPostalCode]) -> int:
        """Insert missing entries, refresh names of known ones; return inserted count."""
        ...

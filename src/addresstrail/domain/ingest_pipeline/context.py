"""Values passed between the ingestion stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from addresstrail.domain.model import AddressSnapshot, Company


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """One registry record projected onto the domain: a company and 0-2 snapshots."""

    company: Company
    snapshots: tuple[AddressSnapshot, ...] = field(default_factory=tuple)

    @property
    def organization_number(self) -> str:
        return self.company.organization_number

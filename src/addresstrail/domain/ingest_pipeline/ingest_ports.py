"""Ports for ingest-pipeline-specific persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from addresstrail.domain.ports.unit_of_work import RepositoryCollection, UnitOfWork

if TYPE_CHECKING:
    from addresstrail.domain.ports.persistence import (
        AddressHistoryRepository,
        CompanyRepository,
        JurisdictionPostalCodeRepository,
    )


@dataclass(slots=True)
class IngestRepositories(RepositoryCollection):
    """Repositories written by one ingestion batch."""

    companies: CompanyRepository
    address_history: AddressHistoryRepository
    postal_codes: JurisdictionPostalCodeRepository


type IngestUnitOfWork = UnitOfWork[IngestRepositories]

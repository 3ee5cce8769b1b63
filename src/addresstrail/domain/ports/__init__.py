"""Ports (protocols) implemented by adapters."""

from __future__ import annotations

from addresstrail.domain.ports.persistence import (
    AddressHistoryRepository,
    CompanyRepository,
    JurisdictionPostalCodeRepository,
    Repository,
)
from addresstrail.domain.ports.unit_of_work import RepositoryCollection, UnitOfWork

__all__ = [
    "AddressHistoryRepository",
    "CompanyRepository",
    "JurisdictionPostalCodeRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]

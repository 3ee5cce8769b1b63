"""SQLAlchemy adapter package for addresstrail."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAddressHistoryRepository,
    SqlAlchemyCompanyRepository,
    SqlAlchemyJurisdictionPostalCodeRepository,
)
from .unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAddressHistoryRepository",
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyIngestUnitOfWork",
    "SqlAlchemyJurisdictionPostalCodeRepository",
    "StartupError",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]

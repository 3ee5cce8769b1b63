"""Public domain model surface."""

from __future__ import annotations

from addresstrail.domain.model.address import (
    AddressHistoryRecord,
    AddressSnapshot,
    DuplicateKey,
    JurisdictionPostalCode,
    duplicate_key,
    normalize_text,
)
from addresstrail.domain.model.company import Company
from addresstrail.domain.model.entity import Entity, new_id
from addresstrail.domain.model.enums import AddressRole, AsOfSource, CompanyStatus

__all__ = [
    "AddressHistoryRecord",
    "AddressRole",
    "AddressSnapshot",
    "AsOfSource",
    "Company",
    "CompanyStatus",
    "DuplicateKey",
    "Entity",
    "JurisdictionPostalCode",
    "duplicate_key",
    "new_id",
    "normalize_text",
]

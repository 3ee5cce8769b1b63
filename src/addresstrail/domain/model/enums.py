"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CompanyStatus(StrEnum):
    ACTIVE = "active"
    BANKRUPT = "bankrupt"
    STRUCK_OFF = "struck_off"


class AddressRole(StrEnum):
    BUSINESS = "business"
    POSTAL = "postal"


class AsOfSource(StrEnum):
    """Where the as-of date of an address snapshot came from."""

    INCORPORATION = "incorporation"
    REGISTRATION = "registration"
    # no registry date available; the ingestion date stands in (low confidence)
    INGESTION_TIME = "ingestion_time"

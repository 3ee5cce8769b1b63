"""Translate Enhetsregisteret payloads into domain companies and address snapshots."""

from __future__ import annotations

from datetime import UTC, date, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from addresstrail.domain.errors import NormalizationError
from addresstrail.domain.ingest_pipeline.context import NormalizedRecord
from addresstrail.domain.model import (
    AddressRole,
    AddressSnapshot,
    AsOfSource,
    Company,
    CompanyStatus,
)

from .schema import AddressPayload, EntityPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def organization_number_of(raw: Mapping[str, Any]) -> str | None:
    """Return the organization number of a raw record without full validation."""

    value = raw.get("organisasjonsnummer")
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def resolve_status(payload: EntityPayload) -> CompanyStatus:
    if payload.bankrupt:
        return CompanyStatus.BANKRUPT
    if payload.deletion_date is not None:
        return CompanyStatus.STRUCK_OFF
    return CompanyStatus.ACTIVE


class RegistryEntityTranslator:
    """Callable normalizer for one raw registry record.

    ``clock`` supplies the ingestion time used for ``last_updated`` and as the
    low-confidence as-of date when the record carries no registry dates.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def __call__(self, raw: Mapping[str, Any]) -> NormalizedRecord:
        try:
            payload = EntityPayload.model_validate(raw)
        except ValidationError as exc:
            raise NormalizationError(
                f"Invalid registry record {organization_number_of(raw) or '<unknown>'}: "
                f"{exc.error_count()} validation error(s)",
                organization_number=organization_number_of(raw),
            ) from exc
        return self.translate(payload)

    def translate(self, payload: EntityPayload) -> NormalizedRecord:
        organization_number = payload.organization_number
        if organization_number is None:
            raise NormalizationError("Registry record has no organization number")

        now = self._clock()
        as_of, as_of_source = self._resolve_as_of(payload, now.date())
        if as_of_source is AsOfSource.INGESTION_TIME:
            log.debug("No registry dates for %s; as-of defaults to %s", organization_number, as_of)

        business = self._snapshot(
            payload.business_address,
            organization_number,
            AddressRole.BUSINESS,
            as_of=as_of,
            as_of_source=as_of_source,
            observed_at=now.date(),
        )
        postal = self._snapshot(
            payload.postal_address,
            organization_number,
            AddressRole.POSTAL,
            as_of=as_of,
            as_of_source=as_of_source,
            observed_at=now.date(),
        )
        # a postal address repeating the business address carries no extra history
        if postal is not None and business is not None:
            if postal.address_line == business.address_line:
                postal = None

        company = Company(
            organization_number=organization_number,
            name=payload.name,
            legal_form=payload.legal_form.code if payload.legal_form else None,
            status=resolve_status(payload),
            registration_date=payload.registration_date,
            industry_code=payload.industry.code if payload.industry else None,
            industry_description=payload.industry.description if payload.industry else None,
            business_address=business.address_line if business else None,
            business_postal_code=business.postal_code if business else None,
            business_city=business.city if business else None,
            postal_address=postal.address_line if postal else None,
            postal_postal_code=postal.postal_code if postal else None,
            postal_city=postal.city if postal else None,
            employee_count=payload.employee_count,
            last_updated=now,
        )
        snapshots = tuple(snapshot for snapshot in (business, postal) if snapshot is not None)
        return NormalizedRecord(company=company, snapshots=snapshots)

    @staticmethod
    def _resolve_as_of(payload: EntityPayload, today: date) -> tuple[date, AsOfSource]:
        if payload.incorporation_date is not None:
            return payload.incorporation_date, AsOfSource.INCORPORATION
        if payload.registration_date is not None:
            return payload.registration_date, AsOfSource.REGISTRATION
        return today, AsOfSource.INGESTION_TIME

    @staticmethod
    def _snapshot(
        address: AddressPayload | None,
        organization_number: str,
        role: AddressRole,
        *,
        as_of: date,
        as_of_source: AsOfSource,
        observed_at: date,
    ) -> AddressSnapshot | None:
        if address is None or address.is_empty:
            return None
        return AddressSnapshot(
            organization_number=organization_number,
            role=role,
            address_line=address.address_line,
            postal_code=address.postal_code,
            city=address.city,
            jurisdiction_code=address.municipality_code,
            jurisdiction_name=address.municipality,
            as_of=as_of,
            as_of_source=as_of_source,
            observed_at=observed_at,
        )

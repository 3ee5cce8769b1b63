"""Pydantic models describing Enhetsregisteret entity payloads.

Only the organization number is mandatory. Optional fields that cannot be
parsed are dropped to ``None`` so that one odd value never costs a company.
"""

from __future__ import annotations

from datetime import date  # noqa: TC003
from logging import getLogger
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

log = getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _none_if_unparseable(
    value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
) -> Any:
    try:
        return handler(_blank_to_none(value))
    except ValidationError:
        log.debug("Dropping unparseable %s value %r", info.field_name, value)
        return None


class BrregBaseModel(BaseModel):
    # postal and municipality codes occasionally arrive as JSON numbers
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class CodePayload(BrregBaseModel):
    code: str | None = Field(default=None, alias="kode")
    description: str | None = Field(default=None, alias="beskrivelse")

    _normalize_text = field_validator("code", "description", mode="before")(_blank_to_none)


class AddressPayload(BrregBaseModel):
    lines: list[str] = Field(default_factory=list, alias="adresse")
    postal_code: str | None = Field(default=None, alias="postnummer")
    city: str | None = Field(default=None, alias="poststed")
    municipality_code: str | None = Field(default=None, alias="kommunenummer")
    municipality: str | None = Field(default=None, alias="kommune")
    country: str | None = Field(default=None, alias="land")
    country_code: str | None = Field(default=None, alias="landkode")

    _tolerate_text = field_validator(
        "postal_code",
        "city",
        "municipality_code",
        "municipality",
        "country",
        "country_code",
        mode="wrap",
    )(_none_if_unparseable)

    @field_validator("lines", mode="before")
    @classmethod
    def _drop_blank_lines(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            return []
        return [str(line).strip() for line in value if line is not None and str(line).strip()]

    @property
    def address_line(self) -> str | None:
        return ", ".join(self.lines) or None

    @property
    def is_empty(self) -> bool:
        return not self.lines and self.postal_code is None


class EntityPayload(BrregBaseModel):
    organization_number: str | None = Field(default=None, alias="organisasjonsnummer")
    name: str | None = Field(default=None, alias="navn")
    legal_form: CodePayload | None = Field(default=None, alias="organisasjonsform")
    business_address: AddressPayload | None = Field(default=None, alias="forretningsadresse")
    postal_address: AddressPayload | None = Field(default=None, alias="postadresse")
    bankrupt: bool = Field(default=False, alias="konkurs")
    registration_date: date | None = Field(
        default=None, alias="registreringsdatoEnhetsregisteret"
    )
    incorporation_date: date | None = Field(default=None, alias="stiftelsesdato")
    deletion_date: date | None = Field(default=None, alias="slettedato")
    industry: CodePayload | None = Field(default=None, alias="naeringskode1")
    employee_count: int | None = Field(default=None, alias="antallAnsatte", ge=0)

    _tolerate_optional = field_validator(
        "name",
        "legal_form",
        "business_address",
        "postal_address",
        "registration_date",
        "incorporation_date",
        "deletion_date",
        "industry",
        "employee_count",
        mode="wrap",
    )(_none_if_unparseable)

    @field_validator("organization_number", mode="before")
    @classmethod
    def _coerce_organization_number(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return _blank_to_none(value)

    @field_validator("bankrupt", mode="wrap")
    @classmethod
    def _unknown_is_false(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        if value is None:
            return False
        try:
            return handler(value)
        except ValidationError:
            log.debug("Treating unparseable %s value %r as false", info.field_name, value)
            return False

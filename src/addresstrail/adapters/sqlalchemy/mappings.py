"""SQLAlchemy mapping metadata for the addresstrail domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from addresstrail.domain.model import (
    AddressHistoryRecord,
    AddressRole,
    Company,
    CompanyStatus,
    JurisdictionPostalCode,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

# partial index predicate: at most one open row per company and address type
CURRENT_ROW_SQLITE_WHERE = "is_current = 1"
CURRENT_ROW_POSTGRESQL_WHERE = "is_current IS TRUE"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column_type(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=_enum_values,
        length=32,
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

company_table = Table(
    "company",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("organization_number", String(20), nullable=False, unique=True),
    Column("name", String, nullable=True),
    Column("legal_form", String(16), nullable=True),
    Column("status", _enum_column_type(CompanyStatus), nullable=False),
    Column("registration_date", Date, nullable=True),
    Column("industry_code", String(16), nullable=True),
    Column("industry_description", String, nullable=True),
    Column("business_address", String, nullable=True),
    Column("business_postal_code", String(16), nullable=True),
    Column("business_city", String, nullable=True),
    Column("postal_address", String, nullable=True),
    Column("postal_postal_code", String(16), nullable=True),
    Column("postal_city", String, nullable=True),
    Column("employee_count", Integer, nullable=True),
    Column("last_updated", UTCDateTime(), nullable=False),
)

company_address_history_table = Table(
    "company_address_history",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "company_id",
        UUIDColumnType,
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("organization_number", String(20), nullable=False),
    Column("address_type", _enum_column_type(AddressRole), nullable=False),
    Column("address_line", String, nullable=True),
    Column("postal_code", String(16), nullable=True),
    Column("city", String, nullable=True),
    Column("jurisdiction_code", String(8), nullable=True),
    Column("jurisdiction_name", String, nullable=True),
    Column("valid_from", Date, nullable=False),
    Column("valid_to", Date, nullable=True),
    Column("is_current", Boolean, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index(
        "ix_company_address_history_org_valid_from",
        "organization_number",
        "valid_from",
    ),
    Index("ix_company_address_history_jurisdiction_code", "jurisdiction_code"),
    Index(
        "uq_company_address_history_current",
        "organization_number",
        "address_type",
        unique=True,
        sqlite_where=text(CURRENT_ROW_SQLITE_WHERE),
        postgresql_where=text(CURRENT_ROW_POSTGRESQL_WHERE),
    ),
)

jurisdiction_postal_code_table = Table(
    "jurisdiction_postal_code",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("jurisdiction_code", String(8), nullable=False),
    Column("postal_code", String(16), nullable=False),
    Column("jurisdiction_name", String, nullable=True),
    Column("city", String, nullable=True),
    UniqueConstraint("jurisdiction_code", "postal_code"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Company, company_table)
    mapper_registry.map_imperatively(
        AddressHistoryRecord,
        company_address_history_table,
        properties={"role": company_address_history_table.c.address_type},
    )
    mapper_registry.map_imperatively(JurisdictionPostalCode, jurisdiction_postal_code_table)

    configure_mappers()
    return mapper_registry

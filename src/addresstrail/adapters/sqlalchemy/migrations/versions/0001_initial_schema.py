"""Initial schema: companies, address history, jurisdiction postal codes.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

COMPANY_STATUSES = ("active", "bankrupt", "struck_off")
ADDRESS_TYPES = ("business", "postal")


def upgrade() -> None:
    op.create_table(
        "company",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_number", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("legal_form", sa.String(length=16), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*COMPANY_STATUSES, name="companystatus", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("registration_date", sa.Date(), nullable=True),
        sa.Column("industry_code", sa.String(length=16), nullable=True),
        sa.Column("industry_description", sa.String(), nullable=True),
        sa.Column("business_address", sa.String(), nullable=True),
        sa.Column("business_postal_code", sa.String(length=16), nullable=True),
        sa.Column("business_city", sa.String(), nullable=True),
        sa.Column("postal_address", sa.String(), nullable=True),
        sa.Column("postal_postal_code", sa.String(length=16), nullable=True),
        sa.Column("postal_city", sa.String(), nullable=True),
        sa.Column("employee_count", sa.Integer(), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_company")),
        sa.UniqueConstraint(
            "organization_number", name=op.f("uq_company_organization_number")
        ),
    )

    op.create_table(
        "company_address_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("organization_number", sa.String(length=20), nullable=False),
        sa.Column(
            "address_type",
            sa.Enum(*ADDRESS_TYPES, name="addressrole", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("address_line", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(length=16), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("jurisdiction_code", sa.String(length=8), nullable=True),
        sa.Column("jurisdiction_name", sa.String(), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["company.id"],
            name=op.f("fk_company_address_history_company_id_company"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_company_address_history")),
    )
    op.create_index(
        "ix_company_address_history_org_valid_from",
        "company_address_history",
        ["organization_number", "valid_from"],
    )
    op.create_index(
        "ix_company_address_history_jurisdiction_code",
        "company_address_history",
        ["jurisdiction_code"],
    )
    op.create_index(
        "uq_company_address_history_current",
        "company_address_history",
        ["organization_number", "address_type"],
        unique=True,
        sqlite_where=sa.text("is_current = 1"),
        postgresql_where=sa.text("is_current IS TRUE"),
    )

    op.create_table(
        "jurisdiction_postal_code",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("jurisdiction_code", sa.String(length=8), nullable=False),
        sa.Column("postal_code", sa.String(length=16), nullable=False),
        sa.Column("jurisdiction_name", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_jurisdiction_postal_code")),
        sa.UniqueConstraint(
            "jurisdiction_code",
            "postal_code",
            name=op.f("uq_jurisdiction_postal_code_jurisdiction_code"),
        ),
    )


def downgrade() -> None:
    op.drop_table("jurisdiction_postal_code")
    op.drop_index("uq_company_address_history_current", table_name="company_address_history")
    op.drop_index(
        "ix_company_address_history_jurisdiction_code", table_name="company_address_history"
    )
    op.drop_index(
        "ix_company_address_history_org_valid_from", table_name="company_address_history"
    )
    op.drop_table("company_address_history")
    op.drop_table("company")

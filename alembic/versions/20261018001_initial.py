"""Initial CareNotes schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261018001"
down_revision = None
branch_labels = None
depends_on = None

REGION = postgresql.ENUM(
    "UK_ENGLAND", "UK_WALES", "UK_SCOTLAND", "UK_NORTHERN_IRELAND", "IRELAND", name="region"
)
BED_STATE = postgresql.ENUM("OCCUPIED", "AVAILABLE", "MAINTENANCE", name="bed_state")
MAINTENANCE_STATE = postgresql.ENUM("PENDING", "IN_PROGRESS", "COMPLETED", name="maintenance_state")
STAFF_ROLE = postgresql.ENUM("MANAGER", "NURSE", "SENIOR_CARER", "CARER", name="staff_role")
AUDIT_ACTOR_TYPE = postgresql.ENUM("USER", "SYSTEM", "API", "INTEGRATION", name="audit_actor_type")
AUDIT_ACTION = postgresql.ENUM(
    "CREATE", "UPDATE", "DELETE", "VIEW", "EXPORT", "IMPORT", name="audit_action"
)
AUDIT_STATUS = postgresql.ENUM("SUCCESS", "FAILURE", name="audit_status")
BANK_IMPORT_FORMAT = postgresql.ENUM("CSV", "OFX", "QIF", name="bank_import_format")

ENUMS = (
    REGION,
    BED_STATE,
    MAINTENANCE_STATE,
    STAFF_ROLE,
    AUDIT_ACTOR_TYPE,
    AUDIT_ACTION,
    AUDIT_STATUS,
    BANK_IMPORT_FORMAT,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _organization_fk() -> list:
    return [
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("region", postgresql.ENUM(name="region", create_type=False), nullable=False),
        sa.Column(
            "timezone",
            sa.String(length=64),
            nullable=False,
            server_default=sa.text("'Europe/London'"),
        ),
        sa.Column("features", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("settings", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.UniqueConstraint("tenant_id", name="uq_organizations_tenant_id"),
    )

    op.create_table(
        "beds",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("number", sa.String(length=32), nullable=False),
        sa.Column("ward", sa.String(length=128), nullable=True),
        sa.Column("status", postgresql.ENUM(name="bed_state", create_type=False), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("organization_id", "number", name="uq_beds_organization_number"),
    )
    op.create_index("ix_beds_organization_id", "beds", ["organization_id"], unique=False)

    op.create_table(
        "bed_maintenance",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("bed_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("expected_end_date", sa.Date(), nullable=True),
        sa.Column(
            "status", postgresql.ENUM(name="maintenance_state", create_type=False), nullable=False
        ),
        sa.ForeignKeyConstraint(["bed_id"], ["beds.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_bed_maintenance_organization_id", "bed_maintenance", ["organization_id"], unique=False
    )
    op.create_index("ix_bed_maintenance_bed_id", "bed_maintenance", ["bed_id"], unique=False)

    op.create_table(
        "staff_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("role", postgresql.ENUM(name="staff_role", create_type=False), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("pin_hash", sa.String(length=128), nullable=True),
        sa.Column("pin_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("temporary_pin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("failed_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("account_locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("barcode", name="uq_staff_members_barcode"),
    )
    op.create_index(
        "ix_staff_members_organization_id", "staff_members", ["organization_id"], unique=False
    )

    op.create_table(
        "residents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("bed_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["bed_id"], ["beds.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("barcode", name="uq_residents_barcode"),
    )
    op.create_index("ix_residents_organization_id", "residents", ["organization_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("actor", sa.String(length=255), nullable=True),
        sa.Column(
            "actor_type", postgresql.ENUM(name="audit_actor_type", create_type=False), nullable=False
        ),
        sa.Column("action", postgresql.ENUM(name="audit_action", create_type=False), nullable=False),
        sa.Column("status", postgresql.ENUM(name="audit_status", create_type=False), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
    )
    op.create_index("ix_audit_logs_organization_id", "audit_logs", ["organization_id"], unique=False)

    op.create_table(
        "bank_imports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        *_organization_fk(),
        sa.Column("account_id", sa.String(length=64), nullable=False),
        sa.Column(
            "format", postgresql.ENUM(name="bank_import_format", create_type=False), nullable=False
        ),
        sa.Column("statement_date", sa.Date(), nullable=True),
        sa.Column("imported_by", sa.String(length=255), nullable=False),
        sa.Column("transaction_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index(
        "ix_bank_imports_organization_id", "bank_imports", ["organization_id"], unique=False
    )

    op.create_table(
        "bank_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        *_organization_fk(),
        sa.Column("bank_import_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("reference", sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(["bank_import_id"], ["bank_imports.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_bank_transactions_bank_import_id", "bank_transactions", ["bank_import_id"], unique=False
    )
    op.create_index(
        "ix_bank_transactions_organization_id",
        "bank_transactions",
        ["organization_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_bank_transactions_organization_id", table_name="bank_transactions")
    op.drop_index("ix_bank_transactions_bank_import_id", table_name="bank_transactions")
    op.drop_table("bank_transactions")
    op.drop_index("ix_bank_imports_organization_id", table_name="bank_imports")
    op.drop_table("bank_imports")
    op.drop_index("ix_audit_logs_organization_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_residents_organization_id", table_name="residents")
    op.drop_table("residents")
    op.drop_index("ix_staff_members_organization_id", table_name="staff_members")
    op.drop_table("staff_members")
    op.drop_index("ix_bed_maintenance_bed_id", table_name="bed_maintenance")
    op.drop_index("ix_bed_maintenance_organization_id", table_name="bed_maintenance")
    op.drop_table("bed_maintenance")
    op.drop_index("ix_beds_organization_id", table_name="beds")
    op.drop_table("beds")
    op.drop_table("organizations")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)

"""Initial schema: subscriber accounts, tenant snapshots and the audit log.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- user_accounts --
    op.create_table(
        "user_accounts",
        sa.Column("username", sa.String(80), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(10), nullable=False, server_default="user"),
        sa.Column("school_name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_classes", sa.Integer(), nullable=False, server_default="5"),
        sa.Column(
            "max_students_per_class", sa.Integer(), nullable=False, server_default="100"
        ),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("username"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_user_accounts_role"),
    )

    # -- tenant_snapshots --
    op.create_table(
        "tenant_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(80), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "kind"),
        sa.CheckConstraint(
            "kind IN ('classes', 'students', 'settings')", name="ck_tenant_snapshots_kind"
        ),
    )
    op.create_index("idx_tenant_snapshots_tenant_id", "tenant_snapshots", ["tenant_id"])

    # -- audit_log --
    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("actor", sa.String(80), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("target", sa.String(80), nullable=True),
        sa.Column("event_details", postgresql.JSONB(), nullable=True),
        sa.Column("severity", sa.String(20), nullable=False, server_default="info"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "severity IN ('info', 'warning', 'error')", name="ck_audit_log_severity"
        ),
    )
    op.create_index("idx_audit_log_actor", "audit_log", ["actor"])
    op.create_index("idx_audit_log_event_type", "audit_log", ["event_type"])
    op.create_index("idx_audit_log_target", "audit_log", ["target"])
    op.create_index("idx_audit_log_severity", "audit_log", ["severity"])
    op.create_index("idx_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("tenant_snapshots")
    op.drop_table("user_accounts")

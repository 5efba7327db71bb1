"""SQLAlchemy ORM model for the tenant_snapshots table."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.models.base import Base


class TenantSnapshot(Base):
    """One serialized slice (classes, students or settings) of a tenant's grade book.

    Attributes:
        id: Auto-incrementing primary key.
        tenant_id: Owning tenant (the subscriber's username).
        kind: Snapshot kind; one of ``classes``, ``students``, ``settings``.
        payload: The camelCase JSON document for that kind.
        updated_at: Last write time.
    """

    __tablename__ = "tenant_snapshots"
    __table_args__ = (UniqueConstraint("tenant_id", "kind"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    payload: Mapped[Any] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    def __repr__(self) -> str:
        return f"<TenantSnapshot(tenant='{self.tenant_id}', kind='{self.kind}')>"

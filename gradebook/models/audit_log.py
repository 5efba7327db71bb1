"""SQLAlchemy ORM model for the audit_log table."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.models.base import Base


class AuditLog(Base):
    """Append-only record of administrator actions on subscriber accounts.

    Attributes:
        id: Auto-incrementing bigint primary key.
        actor: Username of the administrator who acted.
        event_type: Event identifier (e.g. ``'user_created'``).
        target: Username the action applied to.
        event_details: Structured event data as JSONB.
        severity: One of info, warning, error.
        created_at: Timestamp of record creation.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    target: Mapped[str | None] = mapped_column(String(80), nullable=True, index=True)
    event_details: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    severity: Mapped[str] = mapped_column(
        String(20), nullable=False, default="info", index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=text("CURRENT_TIMESTAMP"), index=True
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, type='{self.event_type}', "
            f"target='{self.target}')>"
        )

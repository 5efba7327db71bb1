"""SQLAlchemy ORM models for the grade-book service."""

from gradebook.models.audit_log import AuditLog
from gradebook.models.base import Base
from gradebook.models.tenant_snapshot import TenantSnapshot
from gradebook.models.user_account import UserAccount

__all__ = [
    "Base",
    "UserAccount",
    "TenantSnapshot",
    "AuditLog",
]

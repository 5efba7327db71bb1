"""SQLAlchemy ORM model for the user_accounts table."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.models.base import Base


class UserAccount(Base):
    """A subscriber (school) account provisioned from the admin panel.

    The username doubles as the tenant id that partitions grade-book
    snapshots.

    Attributes:
        username: Login id and primary key.
        password_hash: werkzeug password hash; the plain password is never stored.
        role: ``'user'`` for subscribers, ``'admin'`` for operators.
        school_name: Optional display name of the subscribing school.
        is_active: Suspended accounts cannot log in.
        max_classes: Class quota.
        max_students_per_class: Per-class student quota.
        expiry_date: Last day the subscription is valid.
        created_at: Timestamp of record creation.
    """

    __tablename__ = "user_accounts"

    username: Mapped[str] = mapped_column(String(80), primary_key=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(10), nullable=False, default="user")
    school_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_classes: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    max_students_per_class: Mapped[int] = mapped_column(
        Integer, nullable=False, default=100
    )
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    def __repr__(self) -> str:
        return (
            f"<UserAccount(username='{self.username}', role='{self.role}', "
            f"active={self.is_active})>"
        )

"""Pydantic v2 schemas for login, the current user and the admin panel."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import ConfigDict, Field

from gradebook.schemas.gradebook import CamelModel, SubscriptionLimits


class LoginRequest(CamelModel):
    """Credentials posted to ``/auth/login``."""

    username: str = Field(..., min_length=1, max_length=80)
    password: str = Field(..., min_length=1)


class CurrentUser(CamelModel):
    """The authenticated principal behind a request.

    ``username`` doubles as the tenant id of the grade book.
    """

    username: str
    role: str = "user"
    school_name: str | None = None
    limits: SubscriptionLimits

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUser


class UserCreate(CamelModel):
    """Admin request to provision a subscriber account.

    Quotas and expiry fall back to the configured defaults when omitted.
    """

    username: str = Field(..., min_length=1, max_length=80, pattern=r"^\S+$")
    password: str = Field(..., min_length=4)
    school_name: str | None = Field(default=None, max_length=200)
    max_classes: int | None = Field(default=None, ge=1)
    max_students_per_class: int | None = Field(default=None, ge=1)
    expiry_date: date | None = None


class UserSummary(CamelModel):
    """Account row as listed in the admin panel (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    role: str
    school_name: str | None = None
    is_active: bool
    max_classes: int
    max_students_per_class: int
    expiry_date: date
    created_at: datetime | None = None


class ExtendSubscriptionRequest(CamelModel):
    expiry_date: date

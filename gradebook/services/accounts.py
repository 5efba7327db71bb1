"""
Subscriber accounts: login checks, per-request re-validation and the
admin panel operations.

The built-in administrator is configured through ``ADMIN_USERNAME`` /
``ADMIN_PASSWORD`` and has no database row.  Every other principal is a
:class:`~gradebook.models.user_account.UserAccount`.
"""

from __future__ import annotations

import hmac
import logging
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.config import Settings, get_settings
from gradebook.exceptions import (
    AccountDisabledError,
    InvalidCredentialsError,
    SubscriptionExpiredError,
    UserExistsError,
    UserNotFoundError,
)
from gradebook.models.audit_log import AuditLog
from gradebook.models.user_account import UserAccount
from gradebook.schemas.auth import CurrentUser, UserCreate
from gradebook.schemas.gradebook import SubscriptionLimits
from gradebook.services.security import hash_password, verify_password
from gradebook.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
USER_ROLE = "user"

# The administrator is not bound by subscriber quotas.
ADMIN_LIMITS = SubscriptionLimits(
    max_classes=10_000,
    max_students_per_class=10_000,
    expiry_date=date.max,
)


def limits_for(account: UserAccount) -> SubscriptionLimits:
    return SubscriptionLimits(
        max_classes=account.max_classes,
        max_students_per_class=account.max_students_per_class,
        expiry_date=account.expiry_date,
    )


def _principal(account: UserAccount) -> CurrentUser:
    return CurrentUser(
        username=account.username,
        role=account.role,
        school_name=account.school_name,
        limits=limits_for(account),
    )


class AccountService:
    """Account operations bound to one database session.

    Args:
        session: Request-scoped async session; the caller commits.
        settings: Application settings (admin credentials and defaults).
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _admin_principal(self) -> CurrentUser:
        return CurrentUser(
            username=self._settings.admin_username,
            role=ADMIN_ROLE,
            school_name=None,
            limits=ADMIN_LIMITS,
        )

    def _is_admin_login(self, username: str, password: str) -> bool:
        admin_password = self._settings.admin_password
        if not admin_password or username != self._settings.admin_username:
            return False
        return hmac.compare_digest(password.encode("utf-8"), admin_password.encode("utf-8"))

    @staticmethod
    def _check_usable(account: UserAccount, today: date | None = None) -> None:
        today = today or date.today()
        if not account.is_active:
            raise AccountDisabledError(account.username)
        if account.expiry_date < today:
            raise SubscriptionExpiredError(account.username, account.expiry_date.isoformat())

    async def authenticate(self, username: str, password: str) -> CurrentUser:
        """Check a username/password pair.

        Raises:
            InvalidCredentialsError: Unknown user or wrong password.
            AccountDisabledError: The account is suspended.
            SubscriptionExpiredError: The expiry date is in the past.
        """
        username = username.strip()
        if self._is_admin_login(username, password):
            logger.info("Administrator '%s' logged in", username)
            return self._admin_principal()

        account = await self._session.get(UserAccount, username)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Failed login for '%s'", username)
            raise InvalidCredentialsError()

        self._check_usable(account)
        logger.info("User '%s' logged in", username)
        return _principal(account)

    async def resolve(self, username: str, role: str) -> CurrentUser:
        """Re-validate the principal named by a verified access token."""
        if role == ADMIN_ROLE and username == self._settings.admin_username:
            if not self._settings.admin_password:
                raise InvalidCredentialsError("Administrator login is disabled")
            return self._admin_principal()

        account = await self._session.get(UserAccount, username)
        if account is None:
            raise InvalidCredentialsError("Account no longer exists")
        self._check_usable(account)
        return _principal(account)

    # ------------------------------------------------------------------
    # Admin panel
    # ------------------------------------------------------------------

    async def list_users(self) -> list[UserAccount]:
        result = await self._session.execute(
            select(UserAccount).order_by(UserAccount.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_user(self, username: str) -> UserAccount:
        account = await self._session.get(UserAccount, username)
        if account is None:
            raise UserNotFoundError(username)
        return account

    async def create_user(self, request: UserCreate) -> UserAccount:
        """Provision a subscriber account with defaulted quotas and expiry."""
        username = request.username.strip()
        if username == self._settings.admin_username:
            raise UserExistsError(username)
        if await self._session.get(UserAccount, username) is not None:
            raise UserExistsError(username)

        expiry = request.expiry_date or (
            date.today() + timedelta(days=self._settings.default_subscription_days)
        )
        account = UserAccount(
            username=username,
            password_hash=hash_password(request.password),
            role=USER_ROLE,
            school_name=request.school_name,
            is_active=True,
            max_classes=request.max_classes or self._settings.default_max_classes,
            max_students_per_class=(
                request.max_students_per_class
                or self._settings.default_max_students_per_class
            ),
            expiry_date=expiry,
            created_at=datetime.utcnow(),
        )
        self._session.add(account)
        await self._session.flush()
        logger.info("Created subscriber '%s' (expires %s)", username, expiry.isoformat())
        return account

    async def delete_user(self, username: str, store: SnapshotStore) -> int:
        """Delete an account and every grade-book snapshot it owns.

        Returns:
            Number of snapshots removed.
        """
        account = await self.get_user(username)
        removed = await store.delete_tenant(username)
        await self._session.delete(account)
        await self._session.flush()
        logger.info("Deleted subscriber '%s' and %d snapshots", username, removed)
        return removed

    async def toggle_status(self, username: str) -> UserAccount:
        account = await self.get_user(username)
        account.is_active = not account.is_active
        await self._session.flush()
        return account

    async def extend_subscription(self, username: str, expiry_date: date) -> UserAccount:
        account = await self.get_user(username)
        account.expiry_date = expiry_date
        await self._session.flush()
        return account

    def record_audit(
        self,
        actor: str,
        event_type: str,
        target: str | None = None,
        details: dict[str, Any] | None = None,
        severity: str = "info",
    ) -> None:
        """Append an admin action to ``audit_log``; failures are only logged."""
        try:
            self._session.add(
                AuditLog(
                    actor=actor,
                    event_type=event_type,
                    target=target,
                    event_details=details,
                    severity=severity,
                )
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to write audit log: %s", exc)

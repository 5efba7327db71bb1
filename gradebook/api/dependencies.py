"""FastAPI dependency injection helpers.

Provides reusable ``Depends``-compatible callables for:
- ``get_db()``           → async database session
- ``get_settings()``     → application settings
- ``get_store()``        → tenant snapshot store on the request session
- ``get_current_user()`` → principal resolved from the bearer token
- ``require_admin()``    → same, restricted to the administrator
"""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.config import Settings
from gradebook.config import get_settings as _get_settings_impl
from gradebook.database import get_async_db
from gradebook.exceptions import InvalidCredentialsError, PermissionDeniedError
from gradebook.schemas.auth import CurrentUser
from gradebook.services.accounts import AccountService
from gradebook.services.security import decode_access_token
from gradebook.services.snapshot_store import SnapshotStore, SqlSnapshotStore

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------


async def get_db(
    db: AsyncSession = Depends(get_async_db),
) -> AsyncSession:
    """Provide an async database session to route handlers.

    Thin wrapper around :func:`gradebook.database.get_async_db` that adds a
    typed annotation so handlers can use ``Annotated[AsyncSession, Depends(get_db)]``.
    """
    return db


DBDep = Annotated[AsyncSession, Depends(get_db)]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    """Return the cached application settings."""
    return _get_settings_impl()


SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Snapshot store
# ---------------------------------------------------------------------------


def get_store(db: DBDep) -> SnapshotStore:
    """Return the SQL-backed snapshot store bound to the request session."""
    return SqlSnapshotStore(db)


StoreDep = Annotated[SnapshotStore, Depends(get_store)]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


async def get_current_user(
    db: DBDep,
    settings: SettingsDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    """Resolve and re-validate the principal behind the bearer token.

    Raises:
        InvalidCredentialsError: Missing, invalid or expired token, or the
            account no longer exists.
        AccountDisabledError: The account was suspended after login.
        SubscriptionExpiredError: The subscription ended after login.
    """
    if credentials is None or not credentials.credentials:
        raise InvalidCredentialsError("Not authenticated")
    claims = decode_access_token(credentials.credentials, settings)
    return await AccountService(db, settings).resolve(claims["sub"], claims.get("role", "user"))


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def require_admin(user: CurrentUserDep) -> CurrentUser:
    """Allow only the administrator through."""
    if not user.is_admin:
        logger.warning("User '%s' attempted an admin operation", user.username)
        raise PermissionDeniedError()
    return user


AdminDep = Annotated[CurrentUser, Depends(require_admin)]

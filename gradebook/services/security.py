"""Password hashing and signed access tokens.

Passwords are hashed with werkzeug's salted PBKDF2/scrypt helpers; access
tokens are HS256 JWTs carrying the username (``sub``), the role and an
expiry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from gradebook.config import Settings, get_settings
from gradebook.exceptions import InvalidCredentialsError

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def create_access_token(
    username: str,
    role: str,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for *username*.

    Args:
        username: Account name, stored as the ``sub`` claim.
        role: ``'user'`` or ``'admin'``.
        settings: Settings to read the secret and lifetime from.
        expires_delta: Override of the configured token lifetime.

    Returns:
        The encoded JWT.
    """
    settings = settings or get_settings()
    expires = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": username, "role": role, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify *token* and return its claims.

    Raises:
        InvalidCredentialsError: If the token is expired, tampered with or
            lacks a subject.
    """
    settings = settings or get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise InvalidCredentialsError("Access token has expired") from exc
    except jwt.PyJWTError as exc:
        logger.info("Rejected access token: %s", exc)
        raise InvalidCredentialsError("Invalid access token") from exc

    if not claims.get("sub"):
        raise InvalidCredentialsError("Invalid access token")
    return claims

"""Authentication routes.

Provides:
    POST /auth/login    Exchange username/password for a bearer token.
    GET  /auth/me       Return the principal behind the current token.
"""

import logging

from fastapi import APIRouter

from gradebook.api.dependencies import CurrentUserDep, DBDep, SettingsDep
from gradebook.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from gradebook.services.accounts import AccountService
from gradebook.services.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={
        401: {"description": "Wrong username or password"},
        403: {"description": "Account suspended or subscription expired"},
    },
)
async def login(body: LoginRequest, db: DBDep, settings: SettingsDep) -> TokenResponse:
    """Authenticate and issue an access token."""
    user = await AccountService(db, settings).authenticate(body.username, body.password)
    token = create_access_token(user.username, user.role, settings)
    return TokenResponse(access_token=token, user=user)


@router.get("/me", response_model=CurrentUser, summary="Current user and quotas")
async def me(user: CurrentUserDep) -> CurrentUser:
    return user

"""Administrator routes for subscriber accounts.

Provides:
    GET    /admin/users                       List subscribers.
    POST   /admin/users                       Create a subscriber.
    DELETE /admin/users/{username}            Delete a subscriber and its data.
    POST   /admin/users/{username}/toggle     Suspend / reactivate.
    POST   /admin/users/{username}/extend     Set a new expiry date.

Every mutating call is recorded in ``audit_log``.
"""

import logging

from fastapi import APIRouter, status

from gradebook.api.dependencies import AdminDep, DBDep, SettingsDep, StoreDep
from gradebook.schemas.auth import ExtendSubscriptionRequest, UserCreate, UserSummary
from gradebook.services.accounts import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.get("", response_model=list[UserSummary], summary="List subscribers")
async def list_users(admin: AdminDep, db: DBDep, settings: SettingsDep) -> list[UserSummary]:
    accounts = await AccountService(db, settings).list_users()
    return [UserSummary.model_validate(account) for account in accounts]


@router.post(
    "",
    response_model=UserSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subscriber",
    responses={409: {"description": "Username already taken"}},
)
async def create_user(
    body: UserCreate, admin: AdminDep, db: DBDep, settings: SettingsDep
) -> UserSummary:
    service = AccountService(db, settings)
    account = await service.create_user(body)
    service.record_audit(
        admin.username,
        "user_created",
        account.username,
        {
            "max_classes": account.max_classes,
            "max_students_per_class": account.max_students_per_class,
            "expiry_date": account.expiry_date.isoformat(),
        },
    )
    return UserSummary.model_validate(account)


@router.delete(
    "/{username}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a subscriber and all of its grade-book data",
)
async def delete_user(
    username: str, admin: AdminDep, db: DBDep, settings: SettingsDep, store: StoreDep
) -> None:
    service = AccountService(db, settings)
    removed = await service.delete_user(username, store)
    service.record_audit(
        admin.username, "user_deleted", username, {"snapshots_removed": removed}, severity="warning"
    )


@router.post("/{username}/toggle", response_model=UserSummary, summary="Suspend or reactivate")
async def toggle_user(
    username: str, admin: AdminDep, db: DBDep, settings: SettingsDep
) -> UserSummary:
    service = AccountService(db, settings)
    account = await service.toggle_status(username)
    service.record_audit(
        admin.username,
        "user_activated" if account.is_active else "user_suspended",
        username,
    )
    return UserSummary.model_validate(account)


@router.post("/{username}/extend", response_model=UserSummary, summary="Extend a subscription")
async def extend_user(
    username: str,
    body: ExtendSubscriptionRequest,
    admin: AdminDep,
    db: DBDep,
    settings: SettingsDep,
) -> UserSummary:
    service = AccountService(db, settings)
    account = await service.extend_subscription(username, body.expiry_date)
    service.record_audit(
        admin.username,
        "subscription_extended",
        username,
        {"expiry_date": body.expiry_date.isoformat()},
    )
    return UserSummary.model_validate(account)

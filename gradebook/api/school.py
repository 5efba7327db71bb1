"""School settings, backup and restore routes.

Provides:
    GET    /settings                 Read school settings.
    PUT    /settings                 Replace school settings.
    GET    /backup                   Download the full grade book as JSON.
    POST   /backup/restore           Replace the grade book from a backup (``confirm=true``).
    DELETE /data                     Clear classes and students (``confirm=true``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Query
from fastapi.responses import Response
from pydantic import ValidationError

from gradebook.api.dependencies import CurrentUserDep, StoreDep
from gradebook.exceptions import BackupRestoreError, ConfirmationRequiredError
from gradebook.schemas.gradebook import BackupDocument, SchoolClass, SchoolSettings, Student
from gradebook.schemas.reports import DeletionSummary, RestoreSummary
from gradebook.schemas.roster import SettingsUpdate
from gradebook.services.snapshot_store import load_gradebook, save_gradebook

logger = logging.getLogger(__name__)

router = APIRouter(tags=["school"])


def backup_filename(day: datetime) -> str:
    return f"backup_school_{day.date().isoformat()}.json"


def parse_backup(payload: Any) -> BackupDocument:
    """Validate an uploaded backup document.

    ``classes`` and ``students`` are required; ``settings`` and
    ``timestamp`` are optional.

    Raises:
        BackupRestoreError: When the document is not restorable.
    """
    if not isinstance(payload, dict):
        raise BackupRestoreError("Backup must be a JSON object")
    missing = [key for key in ("classes", "students") if not isinstance(payload.get(key), list)]
    if missing:
        raise BackupRestoreError(f"Backup is missing required lists: {', '.join(missing)}")
    try:
        return BackupDocument(
            timestamp=payload.get("timestamp") or datetime.now(timezone.utc),
            settings=(
                SchoolSettings.model_validate(payload["settings"])
                if isinstance(payload.get("settings"), dict)
                else None
            ),
            classes=[SchoolClass.model_validate(item) for item in payload["classes"]],
            students=[Student.model_validate(item) for item in payload["students"]],
        )
    except ValidationError as exc:
        raise BackupRestoreError(f"Backup contains malformed records: {exc.error_count()} errors") from exc


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.get("/settings", response_model=SchoolSettings, summary="Read school settings")
async def get_school_settings(user: CurrentUserDep, store: StoreDep) -> SchoolSettings:
    gradebook = await load_gradebook(store, user.username)
    return gradebook.settings


@router.put("/settings", response_model=SchoolSettings, summary="Replace school settings")
async def update_school_settings(
    body: SettingsUpdate, user: CurrentUserDep, store: StoreDep
) -> SchoolSettings:
    gradebook = await load_gradebook(store, user.username)
    gradebook.settings = SchoolSettings.model_validate(body.model_dump())
    await save_gradebook(store, user.username, gradebook)
    return gradebook.settings


# ---------------------------------------------------------------------------
# Backup / restore / clear
# ---------------------------------------------------------------------------


@router.get("/backup", summary="Download a full backup")
async def download_backup(user: CurrentUserDep, store: StoreDep) -> Response:
    gradebook = await load_gradebook(store, user.username)
    now = datetime.now(timezone.utc)
    document = BackupDocument(
        timestamp=now,
        settings=gradebook.settings,
        classes=gradebook.classes,
        students=gradebook.students,
    )
    return Response(
        content=document.model_dump_json(by_alias=True),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{backup_filename(now)}"'},
    )


@router.post(
    "/backup/restore",
    response_model=RestoreSummary,
    summary="Restore from a backup",
    responses={
        409: {"description": "confirm=true was not given"},
        422: {"description": "Backup lacks classes or students"},
    },
)
async def restore_backup(
    user: CurrentUserDep,
    store: StoreDep,
    payload: Any = Body(...),
    confirm: bool = Query(default=False, description="Must be true to replace the data"),
) -> RestoreSummary:
    """Replace classes, students and (when present) settings wholesale."""
    if not confirm:
        raise ConfirmationRequiredError("restore")
    document = parse_backup(payload)

    gradebook = await load_gradebook(store, user.username)
    gradebook.classes = document.classes
    gradebook.students = document.students
    if document.settings is not None:
        gradebook.settings = document.settings
    await save_gradebook(store, user.username, gradebook)

    logger.info(
        "Tenant %s restored %d classes and %d students",
        user.username, len(document.classes), len(document.students),
    )
    return RestoreSummary(
        classes=len(document.classes),
        students=len(document.students),
        settings_restored=document.settings is not None,
    )


@router.delete(
    "/data",
    response_model=DeletionSummary,
    summary="Delete all classes and students",
    responses={409: {"description": "confirm=true was not given"}},
)
async def clear_data(
    user: CurrentUserDep,
    store: StoreDep,
    confirm: bool = Query(default=False, description="Must be true to delete the data"),
) -> DeletionSummary:
    """Clear the grade book; school settings are kept."""
    if not confirm:
        raise ConfirmationRequiredError("clear")
    gradebook = await load_gradebook(store, user.username)
    summary = DeletionSummary(
        deleted_classes=len(gradebook.classes),
        deleted_students=len(gradebook.students),
    )
    gradebook.classes = []
    gradebook.students = []
    await save_gradebook(store, user.username, gradebook)
    logger.warning("Tenant %s cleared all grade-book data", user.username)
    return summary

"""Class and subject management routes.

Provides:
    GET    /classes                            List the tenant's classes.
    POST   /classes                            Create a class (quota-checked).
    GET    /classes/{class_id}                 Read one class.
    PATCH  /classes/{class_id}                 Rename a class.
    DELETE /classes/{class_id}                 Delete a class and its students.
    POST   /classes/{class_id}/subjects        Append a subject.
    PATCH  /classes/{class_id}/subjects/{id}   Rename / re-weight a subject.
    DELETE /classes/{class_id}/subjects/{id}   Remove a subject.

Removing a subject leaves students' scores for it in place as stale
entries; they stop counting toward totals immediately.
"""

import logging

from fastapi import APIRouter, status

from gradebook.api.dependencies import CurrentUserDep, StoreDep
from gradebook.schemas.gradebook import SchoolClass, Subject
from gradebook.schemas.reports import DeletionSummary
from gradebook.schemas.roster import ClassCreate, ClassUpdate, SubjectCreate, SubjectUpdate
from gradebook.services import roster
from gradebook.services.snapshot_store import load_gradebook, save_gradebook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["classes"])


@router.get("", response_model=list[SchoolClass], summary="List classes")
async def list_classes(user: CurrentUserDep, store: StoreDep) -> list[SchoolClass]:
    gradebook = await load_gradebook(store, user.username)
    return gradebook.classes


@router.post(
    "",
    response_model=SchoolClass,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
    responses={403: {"description": "Class quota reached"}},
)
async def create_class(body: ClassCreate, user: CurrentUserDep, store: StoreDep) -> SchoolClass:
    gradebook = await load_gradebook(store, user.username)
    school_class = roster.add_class(gradebook, body.name, user.limits)
    await save_gradebook(store, user.username, gradebook)
    return school_class


@router.get("/{class_id}", response_model=SchoolClass, summary="Read a class")
async def get_class(class_id: str, user: CurrentUserDep, store: StoreDep) -> SchoolClass:
    gradebook = await load_gradebook(store, user.username)
    return roster.find_class(gradebook, class_id)


@router.patch("/{class_id}", response_model=SchoolClass, summary="Rename a class")
async def rename_class(
    class_id: str, body: ClassUpdate, user: CurrentUserDep, store: StoreDep
) -> SchoolClass:
    gradebook = await load_gradebook(store, user.username)
    school_class = roster.rename_class(gradebook, class_id, body.name)
    await save_gradebook(store, user.username, gradebook)
    return school_class


@router.delete(
    "/{class_id}",
    response_model=DeletionSummary,
    summary="Delete a class and every student in it",
)
async def delete_class(class_id: str, user: CurrentUserDep, store: StoreDep) -> DeletionSummary:
    gradebook = await load_gradebook(store, user.username)
    removed = roster.delete_class(gradebook, class_id)
    await save_gradebook(store, user.username, gradebook)
    return DeletionSummary(deleted_classes=1, deleted_students=removed)


@router.post(
    "/{class_id}/subjects",
    response_model=Subject,
    status_code=status.HTTP_201_CREATED,
    summary="Add a subject to a class",
)
async def add_subject(
    class_id: str, body: SubjectCreate, user: CurrentUserDep, store: StoreDep
) -> Subject:
    gradebook = await load_gradebook(store, user.username)
    subject = roster.add_subject(gradebook, class_id, body.name, body.max_score)
    await save_gradebook(store, user.username, gradebook)
    return subject


@router.patch("/{class_id}/subjects/{subject_id}", response_model=Subject, summary="Edit a subject")
async def update_subject(
    class_id: str,
    subject_id: str,
    body: SubjectUpdate,
    user: CurrentUserDep,
    store: StoreDep,
) -> Subject:
    gradebook = await load_gradebook(store, user.username)
    subject = roster.update_subject(
        gradebook, class_id, subject_id, name=body.name, max_score=body.max_score
    )
    await save_gradebook(store, user.username, gradebook)
    return subject


@router.delete(
    "/{class_id}/subjects/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a subject from a class",
)
async def remove_subject(
    class_id: str, subject_id: str, user: CurrentUserDep, store: StoreDep
) -> None:
    gradebook = await load_gradebook(store, user.username)
    roster.remove_subject(gradebook, class_id, subject_id)
    await save_gradebook(store, user.username, gradebook)

"""Student entry routes.

Provides:
    GET    /students                 List students, optionally of one class.
    POST   /students                 Create a student (quota-checked).
    GET    /students/{student_id}    Read a student with computed stats.
    PUT    /students/{student_id}    Replace name, class and scores.
    DELETE /students/{student_id}    Delete a student.

Responses carry totals, percentage and grade computed against the class's
current subjects; nothing derived is stored.
"""

import logging

from fastapi import APIRouter, Query, status

from gradebook.api.dependencies import CurrentUserDep, StoreDep
from gradebook.schemas.gradebook import Gradebook, SchoolClass, Student, StudentWithStats
from gradebook.schemas.roster import StudentCreate, StudentUpdate
from gradebook.services import roster
from gradebook.services.grade_calculator import compute_stats
from gradebook.services.ranking import students_in_class
from gradebook.services.snapshot_store import load_gradebook, save_gradebook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["students"])


def _with_stats(gradebook: Gradebook, student: Student) -> StudentWithStats:
    """Project *student* against its class.

    An orphan (its class was deleted or never existed) has no subjects to
    count, so it is projected against an empty class: total 0, percentage 0.
    """
    school_class = next((c for c in gradebook.classes if c.id == student.class_id), None)
    if school_class is None:
        logger.info("Student %s is orphaned (class %s missing)", student.id, student.class_id)
        school_class = SchoolClass(id=student.class_id, name="", subjects=[])
    return compute_stats(student, school_class)


@router.get("", response_model=list[Student], summary="List students")
async def list_students(
    user: CurrentUserDep,
    store: StoreDep,
    class_id: str | None = Query(default=None, description="Only students of this class"),
) -> list[Student]:
    gradebook = await load_gradebook(store, user.username)
    if class_id is None:
        return gradebook.students
    return students_in_class(gradebook.students, class_id)


@router.post(
    "",
    response_model=StudentWithStats,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student",
    responses={
        404: {"description": "Class not found"},
        403: {"description": "Per-class student quota reached"},
    },
)
async def create_student(
    body: StudentCreate, user: CurrentUserDep, store: StoreDep
) -> StudentWithStats:
    gradebook = await load_gradebook(store, user.username)
    student = roster.save_student(gradebook, body.name, body.class_id, body.scores, user.limits)
    await save_gradebook(store, user.username, gradebook)
    return _with_stats(gradebook, student)


@router.get("/{student_id}", response_model=StudentWithStats, summary="Read a student")
async def get_student(student_id: str, user: CurrentUserDep, store: StoreDep) -> StudentWithStats:
    gradebook = await load_gradebook(store, user.username)
    return _with_stats(gradebook, roster.find_student(gradebook, student_id))


@router.put("/{student_id}", response_model=StudentWithStats, summary="Update a student")
async def update_student(
    student_id: str, body: StudentUpdate, user: CurrentUserDep, store: StoreDep
) -> StudentWithStats:
    gradebook = await load_gradebook(store, user.username)
    student = roster.save_student(
        gradebook, body.name, body.class_id, body.scores, user.limits, student_id=student_id
    )
    await save_gradebook(store, user.username, gradebook)
    return _with_stats(gradebook, student)


@router.delete(
    "/{student_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a student"
)
async def delete_student(student_id: str, user: CurrentUserDep, store: StoreDep) -> None:
    gradebook = await load_gradebook(store, user.username)
    roster.delete_student(gradebook, student_id)
    await save_gradebook(store, user.username, gradebook)

"""Roster operations: class, subject and student edits on a tenant's grade book.

All functions mutate the given :class:`Gradebook` in place and return the
affected record; persisting the grade book is the caller's job.  Subscription
quotas are checked here so every entry path (API, CSV import, restore tools)
enforces them the same way.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from gradebook.exceptions import (
    ClassNotFoundError,
    InvalidInputError,
    StudentNotFoundError,
    SubjectNotFoundError,
    SubscriptionLimitError,
)
from gradebook.schemas.gradebook import (
    Gradebook,
    SchoolClass,
    Student,
    Subject,
    SubscriptionLimits,
)
from gradebook.services.export_formatter import ImportedStudent
from gradebook.services.ranking import students_in_class
from gradebook.services.scores import coerce_scores, to_number

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCORE = 100.0
UNKNOWN_STUDENT_NAME = "Unknown"


def new_id() -> str:
    """Return a fresh opaque id."""
    return uuid.uuid4().hex


def _require_name(name: str | None, field: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{field} must not be blank", field=field)
    return cleaned


def _max_score_or_default(max_score: Any) -> float:
    value = to_number(max_score)
    return value if value > 0 else DEFAULT_MAX_SCORE


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_class(gradebook: Gradebook, class_id: str) -> SchoolClass:
    for school_class in gradebook.classes:
        if school_class.id == class_id:
            return school_class
    raise ClassNotFoundError(class_id)


def find_subject(school_class: SchoolClass, subject_id: str) -> Subject:
    for subject in school_class.subjects:
        if subject.id == subject_id:
            return subject
    raise SubjectNotFoundError(school_class.id, subject_id)


def find_student(gradebook: Gradebook, student_id: str) -> Student:
    for student in gradebook.students:
        if student.id == student_id:
            return student
    raise StudentNotFoundError(student_id)


# ---------------------------------------------------------------------------
# Classes and subjects
# ---------------------------------------------------------------------------


def add_class(gradebook: Gradebook, name: str, limits: SubscriptionLimits) -> SchoolClass:
    """Create an empty class, respecting ``limits.max_classes``."""
    cleaned = _require_name(name, "name")
    if len(gradebook.classes) >= limits.max_classes:
        raise SubscriptionLimitError("max_classes", limits.max_classes)
    school_class = SchoolClass(id=new_id(), name=cleaned, subjects=[])
    gradebook.classes.append(school_class)
    logger.info("Class %s (%s) created", school_class.id, cleaned)
    return school_class


def rename_class(gradebook: Gradebook, class_id: str, name: str) -> SchoolClass:
    school_class = find_class(gradebook, class_id)
    school_class.name = _require_name(name, "name")
    return school_class


def delete_class(gradebook: Gradebook, class_id: str) -> int:
    """Delete a class and every student enrolled in it.

    Returns:
        Number of students removed with the class.
    """
    school_class = find_class(gradebook, class_id)
    gradebook.classes.remove(school_class)
    before = len(gradebook.students)
    gradebook.students = [s for s in gradebook.students if s.class_id != class_id]
    removed = before - len(gradebook.students)
    logger.info("Class %s deleted with %d students", class_id, removed)
    return removed


def add_subject(gradebook: Gradebook, class_id: str, name: str, max_score: Any = None) -> Subject:
    """Append a subject; a missing or non-positive maximum becomes 100."""
    school_class = find_class(gradebook, class_id)
    subject = Subject(
        id=new_id(),
        name=_require_name(name, "name"),
        max_score=_max_score_or_default(max_score),
    )
    school_class.subjects.append(subject)
    return subject


def update_subject(
    gradebook: Gradebook,
    class_id: str,
    subject_id: str,
    name: str | None = None,
    max_score: Any = None,
) -> Subject:
    school_class = find_class(gradebook, class_id)
    subject = find_subject(school_class, subject_id)
    if name is not None:
        subject.name = _require_name(name, "name")
    if max_score is not None:
        subject.max_score = _max_score_or_default(max_score)
    return subject


def remove_subject(gradebook: Gradebook, class_id: str, subject_id: str) -> Subject:
    """Remove a subject from its class.

    Students keep their score for it; the entry is simply stale from now on
    and no longer counts toward totals or exports.
    """
    school_class = find_class(gradebook, class_id)
    subject = find_subject(school_class, subject_id)
    school_class.subjects.remove(subject)
    return subject


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


def _check_class_capacity(
    gradebook: Gradebook, class_id: str, limits: SubscriptionLimits, incoming: int = 1
) -> None:
    enrolled = len(students_in_class(gradebook.students, class_id))
    if enrolled + incoming > limits.max_students_per_class:
        raise SubscriptionLimitError("max_students_per_class", limits.max_students_per_class)


def save_student(
    gradebook: Gradebook,
    name: str,
    class_id: str,
    scores: Any,
    limits: SubscriptionLimits,
    student_id: str | None = None,
) -> Student:
    """Create a student, or replace name/class/scores of an existing one.

    Scores of any shape are coerced to numbers; nothing is range-checked.
    """
    cleaned = _require_name(name, "name")
    find_class(gradebook, class_id)
    numeric_scores = coerce_scores(scores)

    if student_id is None:
        _check_class_capacity(gradebook, class_id, limits)
        student = Student(id=new_id(), name=cleaned, class_id=class_id, scores=numeric_scores)
        gradebook.students.append(student)
        logger.info("Student %s added to class %s", student.id, class_id)
        return student

    student = find_student(gradebook, student_id)
    if student.class_id != class_id:
        _check_class_capacity(gradebook, class_id, limits)
    student.name = cleaned
    student.class_id = class_id
    student.scores = numeric_scores
    return student


def delete_student(gradebook: Gradebook, student_id: str) -> Student:
    student = find_student(gradebook, student_id)
    gradebook.students.remove(student)
    return student


def import_students(
    gradebook: Gradebook,
    school_class: SchoolClass,
    imported: list[ImportedStudent],
    limits: SubscriptionLimits,
) -> list[Student]:
    """Append decoded CSV rows to *school_class* as new students.

    The whole batch is rejected when it would overflow the class quota.
    """
    _check_class_capacity(gradebook, school_class.id, limits, incoming=len(imported))
    created = [
        Student(
            id=new_id(),
            name=record.name or UNKNOWN_STUDENT_NAME,
            class_id=school_class.id,
            scores=record.scores,
        )
        for record in imported
    ]
    gradebook.students.extend(created)
    logger.info("Imported %d students into class %s", len(created), school_class.id)
    return created

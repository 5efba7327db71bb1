"""Dashboard statistics over a tenant's grade book.

Every figure is derived from a fresh :func:`compute_stats` projection.
Orphaned students (whose class no longer exists) are counted but never
averaged or ranked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from gradebook.schemas.gradebook import (
    Gradebook,
    RankedStudent,
    SchoolClass,
    Student,
    Subject,
)
from gradebook.services.grade_calculator import (
    GRADE_LABELS,
    compute_stats,
    get_grade_label,
    subject_percentage,
)
from gradebook.services.ranking import rank_students, students_in_class
from gradebook.services.scores import round_percentage, to_number

logger = logging.getLogger(__name__)

PASS_RATIO = 0.5
TOP_STUDENTS = 3


@dataclass
class SubjectAnalysis:
    """Class-wide performance in one subject."""

    subject_id: str
    name: str
    max_score: float
    average_score: float
    average_percentage: float
    pass_count: int
    fail_count: int


@dataclass
class ClassStatistics:
    """Aggregate view of one class."""

    class_id: str
    class_name: str
    student_count: int
    average_percentage: float
    subjects: list[SubjectAnalysis] = field(default_factory=list)
    hardest_subject: SubjectAnalysis | None = None
    easiest_subject: SubjectAnalysis | None = None
    grade_distribution: dict[str, int] = field(default_factory=dict)
    top_students: list[RankedStudent] = field(default_factory=list)


@dataclass
class SchoolOverview:
    """Headline figures across every class of a tenant."""

    total_classes: int
    total_students: int
    orphaned_students: int
    school_average: float


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def analyse_subject(subject: Subject, students: Sequence[Student]) -> SubjectAnalysis:
    """Average score and pass/fail counts for one subject."""
    scores = [to_number(student.scores.get(subject.id, 0)) for student in students]
    average = _mean(scores)
    fail_count = sum(
        1 for score in scores if subject_percentage(score, subject) < PASS_RATIO * 100
    )
    return SubjectAnalysis(
        subject_id=subject.id,
        name=subject.name,
        max_score=subject.max_score,
        average_score=round(average, 2),
        average_percentage=round_percentage(subject_percentage(average, subject)),
        pass_count=len(scores) - fail_count,
        fail_count=fail_count,
    )


def class_statistics(school_class: SchoolClass, students: Sequence[Student]) -> ClassStatistics:
    """Build the dashboard panel for one class.

    Args:
        school_class: The class to analyse.
        students: Any roster; only students of *school_class* are used.

    Returns:
        :class:`ClassStatistics`; the hardest/easiest subject is ``None``
        when the class has no subjects.
    """
    roster = students_in_class(students, school_class.id)
    projected = [compute_stats(student, school_class) for student in roster]

    subjects = [analyse_subject(subject, roster) for subject in school_class.subjects]
    by_difficulty = sorted(subjects, key=lambda s: s.average_percentage)

    distribution = {label: 0 for label in GRADE_LABELS}
    for student in projected:
        distribution[get_grade_label(student.percentage)] += 1

    ranked = rank_students(roster, school_class)
    return ClassStatistics(
        class_id=school_class.id,
        class_name=school_class.name,
        student_count=len(roster),
        average_percentage=round_percentage(_mean([s.percentage for s in projected])),
        subjects=subjects,
        hardest_subject=by_difficulty[0] if by_difficulty else None,
        easiest_subject=by_difficulty[-1] if by_difficulty else None,
        grade_distribution=distribution,
        top_students=ranked[:TOP_STUDENTS],
    )


def school_overview(gradebook: Gradebook) -> SchoolOverview:
    """Headline counts and the school-wide average percentage."""
    classes_by_id = {school_class.id: school_class for school_class in gradebook.classes}
    percentages: list[float] = []
    orphans = 0
    for student in gradebook.students:
        school_class = classes_by_id.get(student.class_id)
        if school_class is None:
            orphans += 1
            continue
        percentages.append(compute_stats(student, school_class).percentage)

    if orphans:
        logger.info("School overview skipped %d orphaned students", orphans)

    return SchoolOverview(
        total_classes=len(gradebook.classes),
        total_students=len(gradebook.students),
        orphaned_students=orphans,
        school_average=round_percentage(_mean(percentages)),
    )

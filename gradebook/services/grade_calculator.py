"""Grade Calculator: totals, percentage and grade label for one student.

The calculator is a pure projection: it reads a :class:`Student` and its
owning :class:`SchoolClass` and returns a new :class:`StudentWithStats`.
Only subjects currently in the class count; score entries for removed
subjects are ignored and missing entries count as zero.
"""

from __future__ import annotations

from gradebook.schemas.gradebook import SchoolClass, Student, StudentWithStats, Subject
from gradebook.services.scores import round_percentage, to_number

# Inclusive lower bounds, checked in descending order.  Export shading, the
# dashboard distribution and certificates read the same table.
GRADE_BANDS: list[tuple[float, str]] = [
    (90.0, "Excellent"),
    (75.0, "Very Good"),
    (60.0, "Good"),
    (50.0, "Acceptable"),
]
LOWEST_GRADE = "Weak"
GRADE_LABELS: list[str] = [label for _, label in GRADE_BANDS] + [LOWEST_GRADE]

# Input fields only, so already-projected records can be projected again.
_STUDENT_FIELDS = set(Student.model_fields)


def get_grade_label(percentage: float) -> str:
    """Map a (rounded) percentage to its grade label."""
    for threshold, label in GRADE_BANDS:
        if percentage >= threshold:
            return label
    return LOWEST_GRADE


def subject_percentage(score: float, subject: Subject) -> float:
    """Percentage of a single subject's maximum, 0 when the maximum is not positive."""
    if subject.max_score <= 0:
        return 0.0
    return to_number(score) / subject.max_score * 100


def compute_stats(student: Student, school_class: SchoolClass) -> StudentWithStats:
    """Project *student* against *school_class*.

    Args:
        student: Input record; its ``scores`` may hold stale or junk entries.
        school_class: The owning class whose subjects define the columns.

    Returns:
        A :class:`StudentWithStats` with ``total_score``,
        ``max_possible_score``, ``percentage`` (two decimals),
        ``grade_label`` and ``over_limit_subjects``.
    """
    total_score = 0.0
    max_possible_score = 0.0
    over_limit: list[str] = []

    for subject in school_class.subjects:
        score = to_number(student.scores.get(subject.id, 0))
        total_score += score
        max_possible_score += subject.max_score
        if score > subject.max_score:
            over_limit.append(subject.id)

    if max_possible_score > 0:
        percentage = round_percentage(total_score / max_possible_score * 100)
    else:
        percentage = 0.0

    return StudentWithStats(
        **student.model_dump(include=_STUDENT_FIELDS),
        total_score=total_score,
        max_possible_score=max_possible_score,
        percentage=percentage,
        grade_label=get_grade_label(percentage),
        over_limit_subjects=over_limit,
    )

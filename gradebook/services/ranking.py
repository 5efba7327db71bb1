"""Ranking Engine: competition ranking of one class roster.

Students are ordered by total score (highest first, ties keep their input
order) and ranked by position: a tie shares the rank of the student above
and gets a duplicate marker, and the next lower score jumps to its 1-based
position.  Totals 80, 80, 70, 70, 70 rank as 1, 1, 3, 3, 3.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from gradebook.schemas.gradebook import RankedStudent, SchoolClass, Student
from gradebook.services.grade_calculator import compute_stats

logger = logging.getLogger(__name__)

DUPLICATE_MARKER = "مكرر"


def format_rank_label(rank: int, duplicate: bool) -> str:
    """Return ``"3"`` or ``"3 مكرر"`` for a tied entry."""
    return f"{rank} {DUPLICATE_MARKER}" if duplicate else str(rank)


def students_in_class(students: Iterable[Student], class_id: str) -> list[Student]:
    """Restrict a roster to the students whose ``class_id`` matches."""
    return [student for student in students if student.class_id == class_id]


def rank_students(
    students: Sequence[Student], school_class: SchoolClass
) -> list[RankedStudent]:
    """Rank a roster that is already restricted to *school_class*.

    Totals are always recomputed from ``scores`` first; any cached derived
    values on the input records are ignored.

    Args:
        students: Students of one class, in their stored order.
        school_class: The class whose subjects define the totals.

    Returns:
        Ranked students, highest total first.
    """
    with_stats = [compute_stats(student, school_class) for student in students]
    # sorted() is stable: equal totals keep their input order.
    ordered = sorted(with_stats, key=lambda s: s.total_score, reverse=True)

    ranked: list[RankedStudent] = []
    rank = 1
    for position, student in enumerate(ordered):
        duplicate = position > 0 and student.total_score == ordered[position - 1].total_score
        if not duplicate:
            rank = position + 1
        ranked.append(
            RankedStudent(
                **student.model_dump(),
                rank=rank,
                rank_label=format_rank_label(rank, duplicate),
            )
        )

    logger.debug("Ranked %d students in class %s", len(ranked), school_class.id)
    return ranked


def search_ranked(ranked: Sequence[RankedStudent], query: str | None) -> list[RankedStudent]:
    """Filter ranked students by a case-insensitive name substring.

    Filtering happens after ranking, so ranks always describe the whole class.
    """
    if not query:
        return list(ranked)
    needle = query.strip().lower()
    return [student for student in ranked if needle in student.name.lower()]

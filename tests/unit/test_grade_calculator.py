"""Unit tests for the grade calculator (gradebook/services/grade_calculator.py).

Covers totals, percentage rounding, grade-band boundaries and the lenient
handling of missing, stale and non-numeric scores.  No database is used.
"""

from __future__ import annotations

import pytest

from gradebook.schemas.gradebook import SchoolClass, Student, Subject
from gradebook.services.grade_calculator import (
    GRADE_LABELS,
    compute_stats,
    get_grade_label,
    subject_percentage,
)
from gradebook.services.scores import round_percentage, to_number


def _single_subject_class(max_score: float = 100) -> SchoolClass:
    return SchoolClass(id="c", name="C", subjects=[Subject(id="m", name="Math", max_score=max_score)])


# ---------------------------------------------------------------------------
# compute_stats
# ---------------------------------------------------------------------------


def test_compute_stats_totals_and_percentage(sample_class):
    """90/100 + 40/50 gives 130 of 150, i.e. 86.67% and "Very Good"."""
    ali = Student(id="s1", name="Ali", class_id="c1", scores={"math": 90, "sci": 40})

    stats = compute_stats(ali, sample_class)

    assert stats.total_score == 130
    assert stats.max_possible_score == 150
    assert stats.percentage == pytest.approx(86.67), f"got {stats.percentage}"
    assert stats.grade_label == "Very Good"
    assert stats.over_limit_subjects == []
    assert stats.id == "s1" and stats.name == "Ali", "identity fields must be carried over"


@pytest.mark.parametrize(
    "score, expected_label",
    [
        (90, "Excellent"),
        (89.99, "Very Good"),
        (75, "Very Good"),
        (74.99, "Good"),
        (60, "Good"),
        (50, "Acceptable"),
        (49.99, "Weak"),
        (0, "Weak"),
    ],
)
def test_grade_band_boundaries_are_inclusive(score, expected_label):
    stats = compute_stats(
        Student(id="s", name="N", class_id="c", scores={"m": score}), _single_subject_class()
    )
    assert stats.grade_label == expected_label, (
        f"{score}% should be {expected_label!r}, got {stats.grade_label!r}"
    )


def test_class_without_subjects_yields_zero_and_lowest_grade():
    empty = SchoolClass(id="c", name="Empty", subjects=[])
    stats = compute_stats(Student(id="s", name="N", class_id="c", scores={"x": 50}), empty)

    assert stats.total_score == 0
    assert stats.max_possible_score == 0
    assert stats.percentage == 0
    assert stats.grade_label == "Weak"


def test_missing_stale_and_junk_scores(sample_class):
    """Missing subjects count 0, removed-subject entries are ignored, junk is 0."""
    student = Student(
        id="s",
        name="N",
        class_id="c1",
        scores={"sci": "abc", "removed_subject": 99},
    )

    stats = compute_stats(student, sample_class)

    assert student.scores["sci"] == 0, "non-numeric score must be coerced to 0"
    assert stats.total_score == 0, "stale entries must not count toward the total"
    assert stats.max_possible_score == 150


def test_scores_above_maximum_are_flagged_not_clamped(sample_class):
    student = Student(id="s", name="N", class_id="c1", scores={"math": 120, "sci": 50})

    stats = compute_stats(student, sample_class)

    assert stats.total_score == 170
    assert stats.over_limit_subjects == ["math"]
    assert stats.percentage == pytest.approx(113.33)
    assert stats.grade_label == "Excellent"


def test_compute_stats_is_idempotent(sample_class):
    student = Student(id="s", name="N", class_id="c1", scores={"math": 70, "sci": 33})

    once = compute_stats(student, sample_class)
    twice = compute_stats(once, sample_class)

    assert twice == once


def test_numeric_strings_are_accepted(sample_class):
    student = Student(id="s", name="N", class_id="c1", scores={"math": " 88 ", "sci": "12.5"})
    assert compute_stats(student, sample_class).total_score == pytest.approx(100.5)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_grade_labels_cover_all_bands():
    assert GRADE_LABELS == ["Excellent", "Very Good", "Good", "Acceptable", "Weak"]
    assert get_grade_label(100) == "Excellent"
    assert get_grade_label(-5) == "Weak"


def test_subject_percentage_with_non_positive_maximum():
    assert subject_percentage(10, Subject(id="x", name="X", max_score=0)) == 0
    assert subject_percentage(25, Subject(id="x", name="X", max_score=50)) == 50


@pytest.mark.parametrize(
    "value, expected",
    [
        (86.66666666666667, 86.67),
        (0.125, 0.13),
        (2.675, 2.67),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ],
)
def test_round_percentage_half_up_on_exact_value(value, expected):
    """0.125 is exact in binary and rounds up; 2.675 is stored just below and rounds down."""
    assert round_percentage(value) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0.0), (True, 0.0), ("", 0.0), ("7", 7.0), (3, 3.0), ([1], 0.0), ("nan", 0.0)],
)
def test_to_number_is_lenient(raw, expected):
    assert to_number(raw) == expected

"""Pydantic v2 data model of a grade book: classes, subjects, students, settings.

Field names are snake_case in Python and camelCase on the wire (``classId``,
``maxScore``, ``totalScore`` …) so that documents written by earlier
versions of the application load unchanged.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from gradebook.services.scores import coerce_scores, to_number


class CamelModel(BaseModel):
    """Base model: camelCase aliases, population by either name, extras ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Subject(CamelModel):
    """A gradable component of a class.

    Attributes:
        id: Opaque subject id.
        name: Display name.
        max_score: Highest achievable score.
    """

    id: str
    name: str
    max_score: float = 100.0

    @field_validator("max_score", mode="before")
    @classmethod
    def _coerce_max_score(cls, value: Any) -> float:
        return to_number(value)


class SchoolClass(CamelModel):
    """A roster-bearing class with its ordered subject list."""

    id: str
    name: str
    subjects: list[Subject] = Field(default_factory=list)


class Student(CamelModel):
    """Authoritative student input data.

    Derived fields are never stored here; they come from
    :func:`gradebook.services.grade_calculator.compute_stats`.
    ``scores`` accepts any shape and is coerced to numbers on the way in.
    """

    id: str
    name: str
    class_id: str
    scores: dict[str, float] = Field(default_factory=dict)

    @field_validator("scores", mode="before")
    @classmethod
    def _coerce_scores(cls, value: Any) -> dict[str, float]:
        return coerce_scores(value)


class StudentWithStats(Student):
    """A student projected against its class's current subject list."""

    total_score: float = 0.0
    max_possible_score: float = 0.0
    percentage: float = 0.0
    grade_label: str = ""
    over_limit_subjects: list[str] = Field(default_factory=list)


class RankedStudent(StudentWithStats):
    """A projected student with its competition rank within the class."""

    rank: int
    rank_label: str


class SchoolSettings(CamelModel):
    """School identity printed on exports and certificates."""

    school_name: str = ""
    principal_name: str = ""
    academic_year: str = ""
    logo_url: str | None = None


class SubscriptionLimits(CamelModel):
    """Quotas attached to a subscriber account."""

    max_classes: int
    max_students_per_class: int
    expiry_date: date


class Gradebook(CamelModel):
    """The full working set of one tenant."""

    classes: list[SchoolClass] = Field(default_factory=list)
    students: list[Student] = Field(default_factory=list)
    settings: SchoolSettings = Field(default_factory=SchoolSettings)


class BackupDocument(CamelModel):
    """Full-system backup: restorable by replacing the grade book wholesale."""

    timestamp: datetime
    settings: SchoolSettings | None = None
    classes: list[SchoolClass]
    students: list[Student]

"""Request bodies for class, subject, student and settings endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from gradebook.schemas.gradebook import CamelModel


class ClassCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)


class ClassUpdate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)


class SubjectCreate(CamelModel):
    """New subject; a missing or non-positive ``max_score`` becomes 100."""

    name: str = Field(..., min_length=1, max_length=200)
    max_score: float | None = None


class SubjectUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    max_score: float | None = None


class StudentCreate(CamelModel):
    """Student entry form.

    ``scores`` maps subject id to a score; values of any type are accepted
    and coerced to numbers (unparseable values count as 0).
    """

    name: str = Field(..., min_length=1, max_length=200)
    class_id: str = Field(..., min_length=1)
    scores: dict[str, Any] = Field(default_factory=dict)


class StudentUpdate(StudentCreate):
    pass


class SettingsUpdate(CamelModel):
    school_name: str = ""
    principal_name: str = ""
    academic_year: str = ""
    logo_url: str | None = None

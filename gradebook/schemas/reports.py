"""Response models for results, imports, dashboards and destructive actions."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from gradebook.schemas.gradebook import CamelModel, RankedStudent, SchoolClass, Student


class ClassResults(CamelModel):
    """Ranked roster of one class."""

    school_class: SchoolClass = Field(..., serialization_alias="class")
    students: list[RankedStudent]
    total: int


class ImportSummary(CamelModel):
    """Outcome of a CSV upload."""

    imported: int
    skipped_rows: int = 0
    warnings: list[str] = Field(default_factory=list)
    students: list[Student] = Field(default_factory=list)


class SubjectAnalysisOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: str
    name: str
    max_score: float
    average_score: float
    average_percentage: float
    pass_count: int
    fail_count: int


class ClassStatisticsOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    class_id: str
    class_name: str
    student_count: int
    average_percentage: float
    subjects: list[SubjectAnalysisOut]
    hardest_subject: SubjectAnalysisOut | None = None
    easiest_subject: SubjectAnalysisOut | None = None
    grade_distribution: dict[str, int]
    top_students: list[RankedStudent]


class SchoolOverviewOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    total_classes: int
    total_students: int
    orphaned_students: int
    school_average: float


class DashboardResponse(CamelModel):
    overview: SchoolOverviewOut
    classes: list[ClassStatisticsOut]


class DeletionSummary(CamelModel):
    """Counts of records removed by a delete or clear operation."""

    deleted_classes: int = 0
    deleted_students: int = 0


class RestoreSummary(CamelModel):
    classes: int
    students: int
    settings_restored: bool

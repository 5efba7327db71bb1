"""Pydantic v2 request/response schemas for the grade-book API."""

from gradebook.schemas.auth import (
    CurrentUser,
    ExtendSubscriptionRequest,
    LoginRequest,
    TokenResponse,
    UserCreate,
    UserSummary,
)
from gradebook.schemas.gradebook import (
    BackupDocument,
    Gradebook,
    RankedStudent,
    SchoolClass,
    SchoolSettings,
    Student,
    StudentWithStats,
    Subject,
    SubscriptionLimits,
)
from gradebook.schemas.reports import (
    ClassResults,
    ClassStatisticsOut,
    DashboardResponse,
    DeletionSummary,
    ImportSummary,
    RestoreSummary,
    SchoolOverviewOut,
    SubjectAnalysisOut,
)
from gradebook.schemas.roster import (
    ClassCreate,
    ClassUpdate,
    SettingsUpdate,
    StudentCreate,
    StudentUpdate,
    SubjectCreate,
    SubjectUpdate,
)

__all__ = [
    "Subject",
    "SchoolClass",
    "Student",
    "StudentWithStats",
    "RankedStudent",
    "SchoolSettings",
    "SubscriptionLimits",
    "Gradebook",
    "BackupDocument",
    "ClassCreate",
    "ClassUpdate",
    "SubjectCreate",
    "SubjectUpdate",
    "StudentCreate",
    "StudentUpdate",
    "SettingsUpdate",
    "ClassResults",
    "ImportSummary",
    "SubjectAnalysisOut",
    "ClassStatisticsOut",
    "SchoolOverviewOut",
    "DashboardResponse",
    "DeletionSummary",
    "RestoreSummary",
    "LoginRequest",
    "CurrentUser",
    "TokenResponse",
    "UserCreate",
    "UserSummary",
    "ExtendSubscriptionRequest",
]

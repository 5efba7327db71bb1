"""Dashboard routes.

Provides:
    GET /dashboard                       School overview plus every class panel.
    GET /dashboard/classes/{class_id}    One class panel.
"""

import logging

from fastapi import APIRouter

from gradebook.api.dependencies import CurrentUserDep, StoreDep
from gradebook.schemas.reports import ClassStatisticsOut, DashboardResponse, SchoolOverviewOut
from gradebook.services import roster
from gradebook.services.snapshot_store import load_gradebook
from gradebook.services.statistics import class_statistics, school_overview

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse, summary="School dashboard")
async def dashboard(user: CurrentUserDep, store: StoreDep) -> DashboardResponse:
    gradebook = await load_gradebook(store, user.username)
    return DashboardResponse(
        overview=SchoolOverviewOut.model_validate(school_overview(gradebook)),
        classes=[
            ClassStatisticsOut.model_validate(class_statistics(school_class, gradebook.students))
            for school_class in gradebook.classes
        ],
    )


@router.get("/classes/{class_id}", response_model=ClassStatisticsOut, summary="Class statistics")
async def class_dashboard(class_id: str, user: CurrentUserDep, store: StoreDep) -> ClassStatisticsOut:
    gradebook = await load_gradebook(store, user.username)
    school_class = roster.find_class(gradebook, class_id)
    return ClassStatisticsOut.model_validate(class_statistics(school_class, gradebook.students))

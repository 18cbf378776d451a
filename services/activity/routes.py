# services/activity/routes.py
from typing import Any

from fastapi import APIRouter, Depends, Query

from packages.common.auth import User, get_current_user
from packages.common.deps import get_client
from packages.schemas.activity import Activity, HeatmapDay

from .service import ActivityService

router = APIRouter(prefix="/activity", tags=["activity"])


def get_activity_service(client: Any = Depends(get_client)) -> ActivityService:
    return ActivityService(client)


@router.get("", response_model=list[Activity])
async def recent_activity(
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    activity: ActivityService = Depends(get_activity_service),
) -> list[Activity]:
    """Dashboard feed of the caller's latest actions."""
    return await activity.recent(user.sub, limit)


@router.get("/heatmap", response_model=list[HeatmapDay])
async def activity_heatmap(
    days: int = Query(84, ge=7, le=366),
    user: User = Depends(get_current_user),
    activity: ActivityService = Depends(get_activity_service),
) -> list[HeatmapDay]:
    return await activity.heatmap(user.sub, days)

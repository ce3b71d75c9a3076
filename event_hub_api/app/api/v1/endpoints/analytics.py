"""Analytics endpoints for API v1."""

from fastapi import APIRouter, Depends, Query

from event_hub_api.app.core.errors import to_http_exception
from event_hub_api.app.core.security import get_current_user
from event_hub_api.app.schemas.analytics import AnalyticsDashboardRead
from event_hub_api.app.services.analytics_service import DEFAULT_RANGE, AnalyticsService


router = APIRouter()


@router.get("/dashboard", response_model=AnalyticsDashboardRead)
async def dashboard(
    days: int = Query(DEFAULT_RANGE, description="Window length in days: 7, 30, 90 or 365"),
    current_user: dict = Depends(get_current_user),
) -> AnalyticsDashboardRead:
    """Pre-aggregated summary for the analytics dashboard.

    Administrators get figures for all events; other users get figures
    for the events they organise.
    """
    try:
        return await AnalyticsService.dashboard(current_user, days=days)
    except ValueError as e:
        raise to_http_exception(e)

# eventflow/api/routers/events.py
import datetime as dt

from fastapi import APIRouter, Depends, Query

from eventflow.api.deps import get_current_user, get_request_context
from eventflow.models.event import EventType
from eventflow.models.user import User
from eventflow.services import events as event_service
from eventflow.services.events import RequestContext, event_to_dict, record

router = APIRouter(prefix="/events", tags=["events"])


@router.get("")
async def list_events(
    user: User = Depends(get_current_user),
    type: str | None = Query(None, max_length=64),
    startDate: dt.datetime | None = Query(None),
    endDate: dt.datetime | None = Query(None),
    search: str | None = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Get a filtered, paginated list of the authenticated user's events.

    Events are ordered newest first. The owner filter is always applied, so
    no combination of query parameters can return another user's events.

    Args:
        user: Authenticated user (from dependency)
        type: Exact event type (e.g. LOGIN_SUCCESS)
        startDate: Inclusive lower bound on creation time (ISO 8601)
        endDate: Inclusive upper bound on creation time (ISO 8601)
        search: Case-insensitive substring matched against message or type
        page: 1-based page number
        limit: Page size (1-100)

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - events: List of event objects
            - pagination: dict with page, limit, total, pages

    Raises:
        ValidationFailed (400): If a query parameter is malformed
    """
    rows, pagination = await event_service.list_events(
        str(user.id),
        type=type,
        start_date=startDate,
        end_date=endDate,
        search=search,
        page=page,
        limit=limit,
    )
    return {"success": True, "events": [event_to_dict(e) for e in rows], "pagination": pagination}


@router.get("/types")
async def event_types(user: User = Depends(get_current_user)):
    """
    Get the distinct event types of the authenticated user with their counts.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - eventTypes: List of {type, count}, most frequent first
    """
    return {"success": True, "eventTypes": await event_service.event_types(str(user.id))}


@router.get("/recent")
async def recent_events(
    user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=50),
):
    """Latest events of the authenticated user (newest first)."""
    rows = await event_service.recent_events(str(user.id), limit)
    return {"success": True, "events": [event_to_dict(e) for e in rows]}


@router.get("/stats")
async def event_stats(user: User = Depends(get_current_user)):
    """
    Dashboard counters for the authenticated user.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - totalEvents / todayEvents / last7DaysEvents / last30DaysEvents: int
            - loginEvents / dashboardEvents: int
            - eventsPerDay: dict with last7DaysAvg and last30DaysAvg
    """
    stats = await event_service.event_stats(str(user.id))
    return {"success": True, **stats}


@router.get("/chart")
async def chart(
    user: User = Depends(get_current_user),
    days: int = Query(7, ge=1, le=90),
):
    """
    Per-day event counts for the last `days` days, oldest first.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - chartData: List of {date, total, byType}
    """
    return {"success": True, "chartData": await event_service.chart_data(str(user.id), days)}


@router.post("/dashboard-access")
async def dashboard_access(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """Record that the authenticated user opened the dashboard (ACCESS_DASHBOARD)."""
    await record(ctx, str(user.id), EventType.ACCESS_DASHBOARD, "User accessed the dashboard")
    return {"success": True, "message": "Dashboard access recorded"}


@router.get("/{event_id}")
async def get_event(event_id: str, user: User = Depends(get_current_user)):
    """
    Get a single event of the authenticated user.

    Args:
        event_id: Event UUID

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - event: Event object

    Raises:
        NotFound (404): If the event doesn't exist or belongs to another user
    """
    event = await event_service.get_event(str(user.id), event_id)
    return {"success": True, "event": event_to_dict(event)}

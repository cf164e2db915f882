# eventflow/services/events.py
"""
Event recorder and owner-scoped event queries.

Every query in this module takes the caller's user id and filters on it;
there is no code path that reads another user's events.
"""
from __future__ import annotations

import datetime as dt
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from tortoise.expressions import Q
from tortoise.functions import Count

from eventflow.core.audit import audit_writer
from eventflow.core.errors import NotFound
from eventflow.models.event import Event, EventType
from eventflow.services.pagination import paginate

UNKNOWN = "unknown"

LOGIN_TYPES = (EventType.LOGIN_SUCCESS.value, "AUTH_LOGIN_SUCCESS")
DASHBOARD_TYPES = (EventType.ACCESS_DASHBOARD.value, "DASHBOARD_ACCESS")


@dataclass(frozen=True)
class RequestContext:
    """Client details attached to every audit event."""
    ip: str = UNKNOWN
    user_agent: str = UNKNOWN

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        ip = request.client.host if request.client else None
        return cls(ip=ip or UNKNOWN, user_agent=request.headers.get("user-agent") or UNKNOWN)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_utc(value: dt.datetime) -> dt.datetime:
    # Naive datetimes from query strings are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def parse_id(value: str) -> uuid.UUID | None:
    """Parse a path id; malformed ids are treated like missing rows."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def record_event(
    user_id: str,
    type: str,
    message: str,
    ip: str | None = None,
    user_agent: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """
    Append an audit event. Never raises: failures are logged by the writer.

    Args:
        user_id: Owner id (stringified UUID) or "system"
        type: Event tag (EventType value or any custom tag)
        message: Human-readable description
        ip: Client IP (defaults to "unknown")
        user_agent: Client User-Agent (defaults to "unknown")
        metadata: Optional free-form context
    """
    await audit_writer.submit({
        "user_id": str(user_id),
        "type": type.value if isinstance(type, EventType) else type,
        "message": message,
        "ip": ip or UNKNOWN,
        "user_agent": user_agent or UNKNOWN,
        "metadata": metadata or {},
    })


async def record(ctx: RequestContext, user_id: str, type: str, message: str,
                 metadata: dict[str, Any] | None = None) -> None:
    """record_event with ip/user agent taken from a request context."""
    await record_event(user_id, type, message, ctx.ip, ctx.user_agent, metadata)


def event_to_dict(e: Event) -> dict:
    return {
        "id": str(e.id),
        "type": e.type,
        "message": e.message,
        "userId": e.user_id,
        "ip": e.ip,
        "userAgent": e.user_agent,
        "metadata": e.metadata or {},
        "createdAt": e.created_at.isoformat() if e.created_at else None,
    }


async def list_events(
    user_id: str,
    *,
    type: str | None = None,
    start_date: dt.datetime | None = None,
    end_date: dt.datetime | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Event], dict[str, int]]:
    """
    Filtered, paginated listing of the caller's events, newest first.

    Returns:
        Tuple of (events on the page, pagination dict with page/limit/total/pages)
    """
    qs = Event.filter(user_id=str(user_id))
    if type:
        qs = qs.filter(type=type)
    if start_date:
        qs = qs.filter(created_at__gte=_as_utc(start_date))
    if end_date:
        qs = qs.filter(created_at__lte=_as_utc(end_date))
    if search:
        qs = qs.filter(Q(message__icontains=search) | Q(type__icontains=search))
    return await paginate(qs.order_by("-created_at", "-id"), page, limit)


async def get_event(user_id: str, event_id: str) -> Event:
    eid = parse_id(event_id)
    event = await Event.get_or_none(id=eid, user_id=str(user_id)) if eid else None
    if not event:
        raise NotFound("Event not found")
    return event


async def recent_events(user_id: str, limit: int = 10) -> list[Event]:
    return await Event.filter(user_id=str(user_id)).order_by("-created_at", "-id").limit(limit)


async def event_types(user_id: str) -> list[dict]:
    """Distinct event types of the caller with their counts, most frequent first."""
    rows = await (
        Event.filter(user_id=str(user_id))
        .annotate(count=Count("id"))
        .group_by("type")
        .order_by("-count", "type")
        .values("type", "count")
    )
    return [{"type": r["type"], "count": r["count"]} for r in rows]


async def event_stats(user_id: str) -> dict:
    now = utc_now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    owned = Event.filter(user_id=str(user_id))

    total = await owned.count()
    today_count = await owned.filter(created_at__gte=today).count()
    last_7 = await owned.filter(created_at__gte=now - dt.timedelta(days=7)).count()
    last_30 = await owned.filter(created_at__gte=now - dt.timedelta(days=30)).count()
    logins = await owned.filter(type__in=LOGIN_TYPES).count()
    dashboard = await owned.filter(type__in=DASHBOARD_TYPES).count()

    return {
        "totalEvents": total,
        "todayEvents": today_count,
        "last7DaysEvents": last_7,
        "last30DaysEvents": last_30,
        "loginEvents": logins,
        "dashboardEvents": dashboard,
        "eventsPerDay": {
            "last7DaysAvg": round(last_7 / 7, 1),
            "last30DaysAvg": round(last_30 / 30, 1),
        },
    }


async def chart_data(user_id: str, days: int = 7) -> list[dict]:
    """
    Per-day event counts for the last `days` days (UTC), oldest first.

    Each bucket: {"date": "YYYY-MM-DD", "total": n, "byType": {type: n}}
    """
    today = utc_now().date()
    first_day = today - dt.timedelta(days=days - 1)
    start = dt.datetime.combine(first_day, dt.time.min, tzinfo=dt.timezone.utc)

    rows = await Event.filter(user_id=str(user_id), created_at__gte=start).order_by("created_at")

    buckets: dict[dt.date, Counter] = {first_day + dt.timedelta(days=i): Counter() for i in range(days)}
    for e in rows:
        day = _as_utc(e.created_at).date()
        if day in buckets:
            buckets[day][e.type] += 1

    return [
        {"date": day.isoformat(), "total": sum(counts.values()), "byType": dict(counts)}
        for day, counts in buckets.items()
    ]


async def purge_events(before: dt.datetime) -> int:
    """
    Bulk administrative purge: delete every event created before `before`.

    Returns:
        Number of deleted rows
    """
    return await Event.filter(created_at__lt=_as_utc(before)).delete()

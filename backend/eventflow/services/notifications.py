# eventflow/services/notifications.py
"""
Owner-scoped notification inbox.

Listing is read-only: notifications only change state through an explicit
update, acknowledge or mark-all-read call.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Iterable

from tortoise.functions import Count

from eventflow.core.errors import NotFound
from eventflow.models.event import EventType
from eventflow.models.notification import Notification, NotificationType
from eventflow.services.events import RequestContext, parse_id, record, record_event, utc_now
from eventflow.services.pagination import paginate


def time_ago(created_at: dt.datetime, now: dt.datetime | None = None) -> str:
    """
    Human-readable relative time ("3 minutes ago"); dates older than 30 days
    are rendered as DD/MM/YYYY.
    """
    now = now or utc_now()
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=dt.timezone.utc)
    seconds = max(int((now - created_at).total_seconds()), 0)
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 30:
        return created_at.strftime("%d/%m/%Y")
    for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if amount > 0:
            return f"{amount} {unit}{'s' if amount > 1 else ''} ago"
    return f"{seconds} second{'s' if seconds != 1 else ''} ago"


def notification_to_dict(n: Notification, now: dt.datetime | None = None) -> dict:
    return {
        "id": str(n.id),
        "title": n.title,
        "message": n.message,
        "type": n.type.value if isinstance(n.type, NotificationType) else n.type,
        "read": n.read,
        "metadata": n.metadata or {},
        "createdAt": n.created_at.isoformat() if n.created_at else None,
        "createdAtFormatted": n.created_at.strftime("%d/%m/%Y %H:%M:%S") if n.created_at else None,
        "timeAgo": time_ago(n.created_at, now) if n.created_at else None,
    }


async def create_notification(
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    metadata: dict[str, Any] | None = None,
) -> Notification:
    """
    Create a notification for a user and record NOTIFICATION_CREATED.

    Used both by the API and as a side effect of other actions (welcome,
    login detected, password changed, ...).
    """
    notification = await Notification.create(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType(type),
        metadata=metadata or {},
    )
    await record_event(
        str(user_id),
        EventType.NOTIFICATION_CREATED,
        f"Notification created: {title}",
        metadata={"notificationId": str(notification.id), "title": title},
    )
    return notification


async def unread_count(user_id: str) -> int:
    return await Notification.filter(user_id=user_id, read=False).count()


async def list_notifications(
    user_id: str,
    *,
    page: int = 1,
    limit: int = 20,
    unread_only: bool = False,
    type: NotificationType | None = None,
) -> tuple[list[Notification], dict[str, int]]:
    qs = Notification.filter(user_id=user_id)
    if unread_only:
        qs = qs.filter(read=False)
    if type:
        qs = qs.filter(type=NotificationType(type))
    return await paginate(qs.order_by("-created_at", "-id"), page, limit)


async def inbox_stats(user_id: str) -> dict[str, int]:
    total = await Notification.filter(user_id=user_id).count()
    unread = await unread_count(user_id)
    return {"total": total, "unread": unread, "read": total - unread}


async def notification_stats(user_id: str) -> dict:
    counts = await inbox_stats(user_id)
    rows = await (
        Notification.filter(user_id=user_id)
        .annotate(count=Count("id"))
        .group_by("type")
        .values("type", "count")
    )
    by_type = {}
    for r in rows:
        key = r["type"].value if isinstance(r["type"], NotificationType) else r["type"]
        by_type[key] = r["count"]
    last_24h = await Notification.filter(
        user_id=user_id, created_at__gte=utc_now() - dt.timedelta(hours=24)
    ).count()
    total = counts["total"]
    return {
        **counts,
        "unreadPercentage": round(counts["unread"] / total * 100, 1) if total else 0.0,
        "byType": by_type,
        "last24Hours": last_24h,
    }


async def _get_owned(user_id: str, notification_id: str) -> Notification:
    nid = parse_id(notification_id)
    notification = await Notification.get_or_none(id=nid, user_id=user_id) if nid else None
    if not notification:
        raise NotFound("Notification not found")
    return notification


async def update_notification(user_id: str, notification_id: str, read: bool | None,
                              ctx: RequestContext) -> Notification:
    notification = await _get_owned(user_id, notification_id)
    if read is not None:
        notification.read = read
        await notification.save()
    await record(ctx, str(user_id), EventType.NOTIFICATION_UPDATED,
                 f"Notification marked as {'read' if notification.read else 'unread'}",
                 {"notificationId": str(notification.id), "read": notification.read})
    return notification


async def mark_all_read(user_id: str, ctx: RequestContext) -> int:
    """
    Mark every unread notification of the user as read.

    Returns:
        Number of rows changed (0 when called again right after)
    """
    count = await Notification.filter(user_id=user_id, read=False).update(read=True)
    await record(ctx, str(user_id), EventType.NOTIFICATIONS_MARK_ALL_READ,
                 "All notifications marked as read", {"count": count})
    return count


async def acknowledge(user_id: str, ids: Iterable[str], ctx: RequestContext) -> int:
    """
    Mark the given notifications as read. Ids that are malformed, unknown or
    owned by another user are ignored.

    Returns:
        Number of rows changed
    """
    parsed = [nid for nid in (parse_id(i) for i in ids) if nid]
    if not parsed:
        return 0
    count = await Notification.filter(user_id=user_id, id__in=parsed, read=False).update(read=True)
    await record(ctx, str(user_id), EventType.NOTIFICATIONS_ACKNOWLEDGED,
                 f"{count} notification(s) acknowledged", {"count": count})
    return count


async def delete_notification(user_id: str, notification_id: str, ctx: RequestContext) -> None:
    notification = await _get_owned(user_id, notification_id)
    await notification.delete()
    await record(ctx, str(user_id), EventType.NOTIFICATION_DELETED, "Notification deleted",
                 {"notificationId": str(notification.id), "title": notification.title})


async def delete_all(user_id: str, read_only: bool, ctx: RequestContext) -> int:
    qs = Notification.filter(user_id=user_id)
    if read_only:
        qs = qs.filter(read=True)
    count = await qs.delete()
    await record(ctx, str(user_id), EventType.NOTIFICATIONS_DELETE_ALL,
                 "All read notifications deleted" if read_only else "All notifications deleted",
                 {"count": count, "readOnly": read_only})
    return count

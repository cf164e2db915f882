# eventflow/api/routers/notifications.py
from fastapi import APIRouter, Depends, Query, status

from eventflow.api.deps import get_current_user, get_request_context
from eventflow.models.event import EventType
from eventflow.models.notification import NotificationType
from eventflow.models.user import User
from eventflow.schemas.notification import AcknowledgeIn, NotificationCreateIn, NotificationUpdateIn
from eventflow.services import notifications as inbox
from eventflow.services.events import RequestContext, record
from eventflow.services.notifications import notification_to_dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unreadOnly: bool = Query(False),
    type: NotificationType | None = Query(None),
):
    """
    Get the authenticated user's notifications, newest first.

    Listing does not change the read flag of any notification; clients mark
    what was shown through POST /notifications/acknowledge. A
    NOTIFICATIONS_ACCESS event is recorded.

    Args:
        user: Authenticated user (from dependency)
        page: 1-based page number
        limit: Page size (1-100)
        unreadOnly: Only return unread notifications
        type: Only return notifications of this type

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - notifications: List of notification objects
            - stats: dict with total, unread, read
            - pagination: dict with page, limit, total, pages
    """
    rows, pagination = await inbox.list_notifications(
        str(user.id), page=page, limit=limit, unread_only=unreadOnly, type=type
    )
    stats = await inbox.inbox_stats(str(user.id))
    await record(ctx, str(user.id), EventType.NOTIFICATIONS_ACCESS, "User viewed notifications",
                 {"page": page, "limit": limit, "unreadOnly": unreadOnly, "returned": len(rows)})
    return {
        "success": True,
        "notifications": [notification_to_dict(n) for n in rows],
        "stats": stats,
        "pagination": pagination,
    }


@router.get("/stats")
async def notification_stats(user: User = Depends(get_current_user)):
    """
    Inbox statistics: total / unread / read counts, unread percentage,
    per-type counts and notifications created in the last 24 hours.
    """
    stats = await inbox.notification_stats(str(user.id))
    return {"success": True, **stats}


@router.get("/unread-count")
async def unread_count(user: User = Depends(get_current_user)):
    return {"success": True, "count": await inbox.unread_count(str(user.id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(body: NotificationCreateIn, user: User = Depends(get_current_user)):
    """
    Create a notification in the authenticated user's inbox.

    Args:
        body: Request body containing title, message, type and optional metadata

    Returns:
        dict: 201 response with:
            - success: bool (always True)
            - notification: Created notification object

    Raises:
        ValidationFailed (400): If title/message are empty or too long, or type is unknown
    """
    notification = await inbox.create_notification(
        str(user.id), body.title, body.message, body.type, body.metadata
    )
    return {"success": True, "notification": notification_to_dict(notification)}


@router.put("/mark-all-read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Mark every unread notification of the user as read.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - count: Number of notifications changed (0 on a repeated call)
    """
    count = await inbox.mark_all_read(str(user.id), ctx)
    return {"success": True, "message": "All notifications marked as read", "count": count}


@router.post("/acknowledge")
async def acknowledge(
    body: AcknowledgeIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Mark the listed notifications as read.

    Ids that are unknown or belong to another user are ignored, so the
    returned count only covers the caller's own unread notifications.
    """
    count = await inbox.acknowledge(str(user.id), body.ids, ctx)
    return {"success": True, "count": count}


@router.api_route("/{notification_id}", methods=["PUT", "PATCH"])
async def update_notification(
    notification_id: str,
    body: NotificationUpdateIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Update the read flag of a notification.

    Raises:
        NotFound (404): If the notification doesn't exist or belongs to another user
    """
    notification = await inbox.update_notification(str(user.id), notification_id, body.read, ctx)
    return {
        "success": True,
        "message": "Notification updated",
        "notification": notification_to_dict(notification),
    }


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Raises:
        NotFound (404): If the notification doesn't exist or belongs to another user
    """
    await inbox.delete_notification(str(user.id), notification_id, ctx)
    return {"success": True, "message": "Notification deleted"}


@router.delete("")
async def delete_all(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    readOnly: bool = Query(False),
):
    """
    Delete all notifications of the user, or only the read ones with ?readOnly=true.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - count: Number of deleted notifications
    """
    count = await inbox.delete_all(str(user.id), readOnly, ctx)
    return {"success": True, "message": f"{count} notification(s) deleted", "count": count}

# eventflow/core/bootstrap.py
"""
Bootstrap module for demo data.
Creates a demo account with a short event history so a fresh install has
something to show on the dashboard.
"""
import datetime as dt
import logging

from eventflow.config import settings
from eventflow.core.security import hash_password
from eventflow.models.event import Event, EventType
from eventflow.models.notification import Notification, NotificationType
from eventflow.models.user import User

logger = logging.getLogger("uvicorn.error")

DEMO_EMAIL = "demo@eventflow.com"
DEMO_NAME = "Demo User"

# (type, message, hours ago)
DEMO_EVENTS = [
    (EventType.USER_REGISTERED, "New user registered: demo@eventflow.com", 72),
    (EventType.LOGIN_SUCCESS, "Login successful", 48),
    (EventType.ACCESS_DASHBOARD, "User accessed the dashboard", 47),
    (EventType.PROFILE_UPDATED, "Profile updated: bio", 30),
    (EventType.LOGIN_SUCCESS, "Login successful", 5),
    (EventType.ACCESS_DASHBOARD, "User accessed the dashboard", 4),
]


async def ensure_demo_data() -> User | None:
    """
    Create the demo user and its sample events if they don't exist yet.

    Only takes effect when DEMO_PASSWORD is set (no default password is ever
    used). Running it again is a no-op and returns the existing user.

    Environment variables:
      DEMO_PASSWORD (required, otherwise nothing is created)

    Returns:
        The demo user, or None when seeding was skipped
    """
    if not settings.demo_password:
        logger.warning("[bootstrap] DEMO_PASSWORD not set -> skip creating demo data.")
        return None

    existing = await User.get_or_none(email=DEMO_EMAIL)
    if existing:
        return existing

    user = await User.create(
        email=DEMO_EMAIL,
        password_hash=hash_password(settings.demo_password),
        name=DEMO_NAME,
        bio="Sample account created at startup",
        credentials={},
    )

    now = dt.datetime.now(dt.timezone.utc)
    for event_type, message, hours_ago in DEMO_EVENTS:
        event = await Event.create(
            type=event_type.value,
            message=message,
            user_id=str(user.id),
            ip="127.0.0.1",
            user_agent="EventFlow demo seed",
            metadata={"demo": True},
        )
        # auto_now_add ignores explicit values, so backdate with an update
        await Event.filter(id=event.id).update(created_at=now - dt.timedelta(hours=hours_ago))

    await Notification.create(
        user_id=user.id,
        title="Welcome to EventFlow!",
        message="This is a demo account. Explore the dashboard to see sample events.",
        type=NotificationType.SUCCESS,
        metadata={"demo": True},
    )
    logger.warning("[bootstrap] Created demo user -> email=%s id=%s events=%d",
                   user.email, user.id, len(DEMO_EVENTS))
    return user

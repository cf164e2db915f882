# eventflow/models/event.py
"""
Database model for audit events.
An event is an immutable record of an action taken by or against a user.
"""
import uuid
from enum import Enum
from tortoise import fields, models

# Owner id for events that cannot be attributed to an account
SYSTEM_USER_ID = "system"


class EventType(str, Enum):
    """Event tags written by the API itself. The column accepts any tag."""
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    PROFILE_ACCESS = "PROFILE_ACCESS"
    PROFILE_UPDATED = "PROFILE_UPDATED"
    PROFILE_PICTURE_UPDATE = "PROFILE_PICTURE_UPDATE"
    CREDENTIALS_UPDATED = "CREDENTIALS_UPDATED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_CHANGE_FAILED = "PASSWORD_CHANGE_FAILED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"
    ACCOUNT_DELETE_FAILED = "ACCOUNT_DELETE_FAILED"
    ACCESS_DASHBOARD = "ACCESS_DASHBOARD"
    NOTIFICATIONS_ACCESS = "NOTIFICATIONS_ACCESS"
    NOTIFICATION_CREATED = "NOTIFICATION_CREATED"
    NOTIFICATION_UPDATED = "NOTIFICATION_UPDATED"
    NOTIFICATION_DELETED = "NOTIFICATION_DELETED"
    NOTIFICATIONS_MARK_ALL_READ = "NOTIFICATIONS_MARK_ALL_READ"
    NOTIFICATIONS_ACKNOWLEDGED = "NOTIFICATIONS_ACKNOWLEDGED"
    NOTIFICATIONS_DELETE_ALL = "NOTIFICATIONS_DELETE_ALL"
    ERROR = "ERROR"
    SYSTEM_EVENT = "SYSTEM_EVENT"


class Event(models.Model):
    """
    Audit event database model.

    Rows are append-only: nothing in the API updates an event. They disappear
    only when the owning account is deleted or through a bulk purge.

    user_id is a plain string column rather than a foreign key so that
    events can be owned by the "system" sentinel (e.g. failed logins for
    unknown emails, deleted accounts).
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key
    type = fields.CharField(max_length=64, index=True)  # Free-form tag, e.g. LOGIN_SUCCESS
    message = fields.TextField()  # Human-readable description
    user_id = fields.CharField(max_length=64, index=True)  # Owner id or "system"
    ip = fields.CharField(max_length=64, default="unknown")  # Client IP
    user_agent = fields.CharField(max_length=512, default="unknown")  # Client User-Agent
    metadata = fields.JSONField(default=dict)  # Free-form context
    created_at = fields.DatetimeField(auto_now_add=True, index=True)

    class Meta:
        table = "events"

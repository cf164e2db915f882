# eventflow/models/notification.py
"""
Database model for notifications.
A notification is a mutable inbox item owned by exactly one user.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class NotificationType(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class Notification(models.Model):
    """
    Notification database model.

    Relationships:
    - Belongs to a User (many-to-one); deleted together with the user
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key
    user = fields.ForeignKeyField(
        "models.User",
        related_name="notifications",
        on_delete=fields.CASCADE
    )  # Owner; cascade delete
    title = fields.CharField(max_length=200)
    message = fields.TextField()
    type = fields.CharEnumField(NotificationType, default=NotificationType.INFO)
    read = fields.BooleanField(default=False, index=True)  # Flips false -> true when acknowledged
    metadata = fields.JSONField(default=dict)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "notifications"

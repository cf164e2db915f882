# eventflow/schemas/notification.py
"""
Pydantic schemas for notification endpoints.
"""
from typing import Any

from pydantic import BaseModel, Field

from eventflow.models.notification import NotificationType

class NotificationCreateIn(BaseModel):
    """
    Request model for creating a notification through the API.
    """
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=1000)
    type: NotificationType  # INFO / WARNING / SUCCESS / ERROR
    metadata: dict[str, Any] | None = None

class NotificationUpdateIn(BaseModel):
    """
    Request model for toggling the read flag of one notification.
    """
    read: bool | None = None

class AcknowledgeIn(BaseModel):
    """
    Request model for explicitly acknowledging (marking read) notifications.
    """
    ids: list[str] = Field(min_length=1, max_length=100)

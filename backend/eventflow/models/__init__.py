# eventflow/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account and authentication model
- Event: Immutable audit event model
- Notification: Per-user inbox item model
"""
from .user import User
from .event import Event, EventType, SYSTEM_USER_ID
from .notification import Notification, NotificationType

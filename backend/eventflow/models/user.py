# eventflow/models/user.py
"""
Database model for users.
Represents a user account: login identity, hashed credential and profile fields.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Notifications (one-to-many, via related_name="notifications")
    - Owns Events through Event.user_id (string column, see Event)

    Security:
    - Password is stored as a bcrypt hash (never store plain text passwords)
    - Email is the login identity; stored lower-cased and unique
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    email = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # Login email (lower-cased, unique, indexed for fast lookups)
    password_hash = fields.CharField(max_length=255)  # bcrypt hash, never returned by the API
    name = fields.CharField(max_length=100)  # Display name
    social_name = fields.CharField(max_length=100, null=True)  # Optional preferred name
    bio = fields.CharField(max_length=100, null=True)  # Short biography (max 100 chars)
    profile_picture = fields.CharField(max_length=1024, null=True)  # Avatar URL
    credentials = fields.JSONField(default=dict)  # Free-form credentials map (merged on update)
    created_at = fields.DatetimeField(auto_now_add=True)  # Timestamp when account was created
    updated_at = fields.DatetimeField(auto_now=True)  # Timestamp of last profile change

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name

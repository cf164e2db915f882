# eventflow/schemas/profile.py
"""
Pydantic schemas for profile endpoints.
All update models are partial: only the fields sent by the client are applied.
"""
from typing import Any

from pydantic import BaseModel, EmailStr, Field, HttpUrl

class ProfileUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    socialName: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=100)  # Bio is limited to 100 characters
    profilePicture: HttpUrl | None = None

class PasswordUpdateIn(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=6)

class CredentialsUpdateIn(BaseModel):
    credentials: dict[str, Any] = Field(default_factory=dict)

class ProfilePictureIn(BaseModel):
    imageUrl: HttpUrl

class DeleteAccountIn(BaseModel):
    password: str = Field(min_length=1)  # Required to confirm the deletion

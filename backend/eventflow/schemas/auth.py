# eventflow/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and token refresh.
"""
from pydantic import BaseModel, EmailStr, Field

class RegisterIn(BaseModel):
    """
    Request model for account registration.
    """
    name: str = Field(min_length=2, max_length=100)  # Display name
    email: EmailStr  # Login email (stored lower-cased)
    password: str = Field(min_length=6)  # Plain text password, hashed server-side
    socialName: str | None = Field(default=None, max_length=100)  # Optional preferred name

class LoginIn(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    email: EmailStr  # Login email
    password: str = Field(min_length=1)  # User password (plain text, compared against the bcrypt hash)

class RefreshIn(BaseModel):
    """
    Request model for exchanging a refresh token for a new access token.
    """
    refreshToken: str = Field(min_length=1)

# eventflow/core/security.py
"""
Security module for authentication and authorization.
Handles password hashing, JWT token creation/validation, and cryptographic operations.
"""
import datetime as dt
from typing import Any

import jwt  # PyJWT
from passlib.context import CryptContext

from eventflow.config import settings

# Password hashing context
# bcrypt with a cost factor of 10 (configurable through BCRYPT_ROUNDS)
pwd_context = CryptContext(
    schemes=["bcrypt"],                     # Use bcrypt for password hashing
    deprecated="auto",                      # Automatically handle deprecated schemes
    bcrypt__rounds=settings.bcrypt_rounds,  # Cost factor
)

# JWT configuration
JWT_SECRET = settings.jwt_secret  # Secret key for access tokens (required, no default)
JWT_REFRESH_SECRET = settings.jwt_refresh_secret or settings.jwt_secret  # Secret key for refresh tokens
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes  # Access token lifetime (7 days by default)
REFRESH_TOKEN_EXPIRE_DAYS = settings.refresh_token_expire_days  # Refresh token lifetime
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)


class TokenError(Exception):
    """
    Base class for token verification failures.

    Each subclass carries a stable `code` so callers can tell an expired
    token apart from a tampered or unreadable one.
    """
    code = "AUTH_TOKEN_INVALID"
    message = "Invalid token"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class TokenExpiredError(TokenError):
    code = "AUTH_TOKEN_EXPIRED"
    message = "Token expired"


class TokenSignatureError(TokenError):
    code = "AUTH_TOKEN_INVALID"
    message = "Invalid token signature"


class TokenMalformedError(TokenError):
    code = "AUTH_TOKEN_MALFORMED"
    message = "Invalid or malformed token"


def ensure_signing_key() -> None:
    """
    Fail fast when no signing key is configured.

    Called at application startup so a deployment without JWT_SECRET never
    issues tokens signed with a guessable key.

    Raises:
        RuntimeError: If JWT_SECRET is not set
    """
    if not JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not set; refusing to start without a token signing key")


def _signing_key(refresh: bool = False) -> str:
    key = JWT_REFRESH_SECRET if refresh else JWT_SECRET
    if not key:
        raise RuntimeError("JWT_SECRET is not set")
    return key


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)

    Note: Never store plain text passwords. Always use this function before saving.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)


def create_access_token(
    user_id: str,
    extra_claims: dict[str, Any] | None = None,
    expires_delta: dt.timedelta | None = None,
) -> str:
    """
    Create a JWT access token for user authentication.

    Args:
        user_id: Unique user identifier (UUID string)
        extra_claims: Optional additional claims (e.g. email, name)
        expires_delta: Optional lifetime override (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token string

    Token payload includes:
        - sub: Subject (user ID)
        - typ: Token type ("access")
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    lifetime = expires_delta if expires_delta is not None else dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = dict(extra_claims or {})
    payload.update({
        "sub": user_id,  # Subject (user ID)
        "typ": "access",
        "iat": now,
        "exp": now + lifetime,
    })
    return jwt.encode(payload, _signing_key(), algorithm=JWT_ALG)


def create_refresh_token(user_id: str) -> str:
    """
    Create a long-lived refresh token that can only be exchanged for a new access token.
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "typ": "refresh",
        "iat": now,
        "exp": now + dt.timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(payload, _signing_key(refresh=True), algorithm=JWT_ALG)


def _decode(token: str, key: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, key, algorithms=[JWT_ALG])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidSignatureError as exc:
        raise TokenSignatureError() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenMalformedError() from exc

    if payload.get("typ") != expected_type or not payload.get("sub"):
        raise TokenMalformedError()
    return payload


def verify_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload dictionary containing sub (user id), iat, exp and extra claims

    Raises:
        TokenExpiredError: If token has expired
        TokenSignatureError: If the signature does not match (tampered or foreign token)
        TokenMalformedError: If the token cannot be decoded or is not an access token
    """
    return _decode(token, _signing_key(), "access")


def verify_refresh_token(token: str) -> dict:
    """
    Decode and validate a refresh token. Raises the same errors as verify_access_token.
    """
    return _decode(token, _signing_key(refresh=True), "refresh")

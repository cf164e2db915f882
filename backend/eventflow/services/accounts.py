# eventflow/services/accounts.py
"""
Credential store operations: registration, login, password changes, account
deletion and profile updates. Every state change leaves an audit event and,
where the user should know about it, a notification.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote_plus

from tortoise.exceptions import IntegrityError

from eventflow.core.audit import audit_writer
from eventflow.core.errors import Conflict, Unauthorized, ValidationFailed
from eventflow.core.security import create_access_token, hash_password, verify_password
from eventflow.models.event import Event, EventType, SYSTEM_USER_ID
from eventflow.models.notification import Notification, NotificationType
from eventflow.models.user import User
from eventflow.services.events import RequestContext, record, utc_now
from eventflow.services.notifications import create_notification

logger = logging.getLogger("uvicorn.error")

# Generic message for unknown email and wrong password alike (no user enumeration)
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote_plus(name)}&background=random&color=fff&size=128"


def public_user(u: User) -> dict:
    """Public projection of a user (never includes the password hash)."""
    return {
        "id": str(u.id),
        "email": u.email,
        "name": u.name,
        "socialName": u.social_name,
        "profilePicture": u.profile_picture,
        "bio": u.bio,
        "credentials": u.credentials or {},
        "createdAt": u.created_at.isoformat() if u.created_at else None,
        "updatedAt": u.updated_at.isoformat() if u.updated_at else None,
    }


async def register(email: str, password: str, name: str, social_name: str | None,
                   ctx: RequestContext) -> User:
    """
    Create an account.

    Raises:
        Conflict: If the email is already registered (case-insensitive)
    """
    email = normalize_email(email)
    if await User.filter(email=email).exists():
        raise Conflict("Email already in use", code="EMAIL_EXISTS")

    try:
        user = await User.create(
            email=email,
            password_hash=hash_password(password),
            name=name,
            social_name=social_name or None,
            profile_picture=avatar_url(name),
            credentials={},
        )
    except IntegrityError:
        # A concurrent registration won the unique index
        raise Conflict("Email already in use", code="EMAIL_EXISTS")
    await record(ctx, str(user.id), EventType.USER_REGISTERED, f"New user registered: {email}",
                 {"email": email})
    await create_notification(
        user.id,
        "Welcome to EventFlow!",
        "Your account was created successfully. Explore the dashboard to follow your events in real time.",
        NotificationType.SUCCESS,
        {"welcome": True, "timestamp": utc_now().isoformat()},
    )
    logger.info("[auth] registered user id=%s email=%s", user.id, email)
    return user


def issue_token(user: User) -> str:
    return create_access_token(str(user.id), {"email": user.email, "name": user.name})


async def login(email: str, password: str, ctx: RequestContext) -> tuple[User, str]:
    """
    Check credentials and issue an access token.

    Returns:
        Tuple of (user, access token)

    Raises:
        Unauthorized: Same message whether the email is unknown or the password is wrong
    """
    email = normalize_email(email)
    user = await User.get_or_none(email=email)
    if not user:
        await record(ctx, SYSTEM_USER_ID, EventType.LOGIN_FAILED, f"Login failed for unknown email: {email}",
                     {"email": email, "reason": "unknown_email"})
        logger.warning("[auth] login failed: unknown email")
        raise Unauthorized(INVALID_CREDENTIALS, code="AUTH_INVALID_CREDENTIALS")

    if not verify_password(password, user.password_hash):
        await record(ctx, str(user.id), EventType.LOGIN_FAILED, "Login failed: wrong password",
                     {"email": email, "reason": "wrong_password"})
        logger.warning("[auth] login failed for user id=%s", user.id)
        raise Unauthorized(INVALID_CREDENTIALS, code="AUTH_INVALID_CREDENTIALS")

    token = issue_token(user)
    await record(ctx, str(user.id), EventType.LOGIN_SUCCESS, "Login successful")
    await create_notification(
        user.id,
        "Login detected",
        f"A new login to your account was made. IP: {ctx.ip}",
        NotificationType.INFO,
        {
            "ip": ctx.ip,
            "userAgent": ctx.user_agent,
            "timestamp": utc_now().isoformat(),
            "location": "localhost" if ctx.ip in ("127.0.0.1", "::1") else "remote",
        },
    )
    logger.info("[auth] login ok user id=%s", user.id)
    return user, token


async def update_password(user: User, current_password: str, new_password: str,
                          ctx: RequestContext) -> None:
    """
    Raises:
        ValidationFailed: If current_password does not match the stored hash
    """
    if not verify_password(current_password, user.password_hash):
        await record(ctx, str(user.id), EventType.PASSWORD_CHANGE_FAILED,
                     "Password change attempted with wrong current password")
        raise ValidationFailed("Current password is incorrect", code="INVALID_PASSWORD")

    user.password_hash = hash_password(new_password)
    await user.save()
    await record(ctx, str(user.id), EventType.PASSWORD_CHANGED, "Password changed")
    await create_notification(
        user.id,
        "Password changed",
        "Your password was changed. If this wasn't you, contact support.",
        NotificationType.WARNING,
        {"timestamp": utc_now().isoformat(), "ip": ctx.ip},
    )


async def delete_account(user: User, password: str, ctx: RequestContext) -> None:
    """
    Delete the user together with every owned notification and event.

    The deletion itself is recorded against the "system" owner so the trail
    survives the account.

    Raises:
        ValidationFailed: If password does not match the stored hash
    """
    if not verify_password(password, user.password_hash):
        await record(ctx, str(user.id), EventType.ACCOUNT_DELETE_FAILED,
                     "Account deletion attempted with wrong password")
        raise ValidationFailed("Incorrect password", code="INVALID_PASSWORD")

    user_id, email = str(user.id), user.email
    # Queued audit rows for this user must land before the events are deleted
    await audit_writer.drain()
    # Foreign keys cascade for notifications, but events have no FK: delete both explicitly
    await Notification.filter(user_id=user.id).delete()
    await Event.filter(user_id=user_id).delete()
    await user.delete()

    await record(ctx, SYSTEM_USER_ID, EventType.ACCOUNT_DELETED, f"Account deleted: {email}",
                 {"userId": user_id, "email": email})
    logger.info("[auth] deleted account id=%s", user_id)


async def update_profile(user: User, changes: dict[str, Any], ctx: RequestContext) -> User:
    """
    Apply a partial profile update.

    Args:
        changes: Subset of name / email / socialName / bio / profilePicture.
            A null name or email is ignored; null socialName / bio /
            profilePicture clears the field.

    Raises:
        ValidationFailed: If no applicable field was provided
        Conflict: If the new email belongs to another account
    """
    fields = []

    if changes.get("email") is not None:
        email = normalize_email(changes["email"])
        if await User.filter(email=email).exclude(id=user.id).exists():
            raise Conflict("Email already in use by another user", code="EMAIL_EXISTS")
        user.email = email
        fields.append("email")

    mapping = {"name": "name", "socialName": "social_name", "bio": "bio", "profilePicture": "profile_picture"}
    for key, attr in mapping.items():
        if key not in changes:
            continue
        value = changes[key]
        if key == "name" and value is None:
            continue
        setattr(user, attr, str(value) if value is not None else None)
        fields.append(key)

    if not fields:
        raise ValidationFailed("No data provided for update")

    try:
        await user.save()
    except IntegrityError:
        raise Conflict("Email already in use by another user", code="EMAIL_EXISTS")

    await record(ctx, str(user.id), EventType.PROFILE_UPDATED, f"Profile updated: {', '.join(fields)}",
                 {"updatedFields": fields})
    await create_notification(
        user.id,
        "Profile updated",
        f"Your profile was updated. Changed fields: {', '.join(fields)}",
        NotificationType.SUCCESS,
        {"updatedFields": fields, "timestamp": utc_now().isoformat()},
    )
    return user


async def update_credentials(user: User, credentials: dict[str, Any], ctx: RequestContext) -> User:
    """Shallow-merge new keys into the credentials map, keeping existing ones."""
    current = user.credentials if isinstance(user.credentials, dict) else {}
    user.credentials = {**current, **credentials}
    await user.save()

    fields = list(credentials.keys())
    await record(ctx, str(user.id), EventType.CREDENTIALS_UPDATED, "Credentials updated",
                 {"updatedFields": fields})
    await create_notification(
        user.id,
        "Credentials updated",
        f"Your credentials were updated. {len(fields)} field(s) changed.",
        NotificationType.SUCCESS,
        {"updatedFields": fields, "timestamp": utc_now().isoformat()},
    )
    return user


async def update_profile_picture(user: User, image_url: str, ctx: RequestContext) -> User:
    user.profile_picture = image_url
    await user.save()
    await record(ctx, str(user.id), EventType.PROFILE_PICTURE_UPDATE, "Profile picture updated")
    await create_notification(
        user.id,
        "Picture updated",
        "Your profile picture was updated.",
        NotificationType.SUCCESS,
        {"timestamp": utc_now().isoformat()},
    )
    return user

# eventflow/api/routers/auth.py
import logging

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse

from eventflow.api.deps import extract_bearer, get_current_user, get_request_context
from eventflow.core import security
from eventflow.core.db import ping_db
from eventflow.core.errors import APIError, Unauthorized
from eventflow.core.security import TokenError, create_refresh_token, verify_access_token, verify_refresh_token
from eventflow.models.event import EventType
from eventflow.models.notification import NotificationType
from eventflow.models.user import User
from eventflow.schemas.auth import LoginIn, RefreshIn, RegisterIn
from eventflow.services import accounts
from eventflow.services.events import RequestContext, parse_id, record, utc_now
from eventflow.services.notifications import create_notification

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("uvicorn.error")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, ctx: RequestContext = Depends(get_request_context)):
    """
    Register a new user account.

    Creates a new user with the provided name, email and password. The
    password is hashed before storage and the email must be unique
    (case-insensitive). A USER_REGISTERED event and a welcome notification
    are created as side effects.

    Args:
        body: Request body containing:
            - name: str (2-100 chars)
            - email: str (valid email, must be unique)
            - password: str (min 6 chars, hashed before storage)
            - socialName: str | None (optional)
        ctx: Caller ip / user agent (from dependency)

    Returns:
        dict: 201 response with:
            - success: bool (always True)
            - user: public user projection
            - token: JWT access token

    Errors:
        - 400 VALIDATION_ERROR: Invalid body (field-level details)
        - 400 EMAIL_EXISTS: Email already registered
    """
    user = await accounts.register(body.email, body.password, body.name, body.socialName, ctx)
    return {
        "success": True,
        "message": "Account created successfully!",
        "user": accounts.public_user(user),
        "token": accounts.issue_token(user),
    }


@router.post("/login")
async def login(body: LoginIn, ctx: RequestContext = Depends(get_request_context)):
    """
    Authenticate user and create access token.

    Validates the credentials and issues a JWT access token (plus a refresh
    token). Unknown email and wrong password produce the same 401 response so
    accounts cannot be enumerated; both are recorded as LOGIN_FAILED events.

    Args:
        body: Request body containing email and password
        ctx: Caller ip / user agent (from dependency)

    Returns:
        dict: Response containing:
            - success: bool (always True on success)
            - user: public user projection
            - token: JWT access token
            - refreshToken: JWT refresh token

    Raises:
        Unauthorized (401): If credentials are invalid (AUTH_INVALID_CREDENTIALS)
    """
    user, token = await accounts.login(body.email, body.password, ctx)
    return {
        "success": True,
        "message": "Login successful!",
        "user": accounts.public_user(user),
        "token": token,
        "refreshToken": create_refresh_token(str(user.id)),
    }


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Log out the current user.

    Tokens are stateless: the client discards its token, and the token stays
    valid until it expires. This endpoint only records a LOGOUT event and a
    notification.

    Returns:
        dict: Response containing:
            - success: bool (always True)
    """
    await record(ctx, str(user.id), EventType.LOGOUT, "User logged out")
    await create_notification(
        user.id,
        "Logged out",
        "You have signed out of your account.",
        NotificationType.INFO,
        {"timestamp": utc_now().isoformat(), "ip": ctx.ip},
    )
    return {"success": True, "message": "Logout successful"}


@router.get("/verify")
async def verify(authorization: str | None = Header(default=None)):
    """
    Check whether a bearer token is still usable.

    Never fails with an error status: the answer is always 200 with a
    `valid` flag, plus a `reason` code when the token is rejected.

    Returns:
        dict: Response containing:
            - success / valid: bool
            - user: public user projection (if valid)
            - token: the verified token (if valid)
            - error / reason: message and code (if invalid)
    """
    def invalid(message: str, reason: str) -> dict:
        return {"success": False, "valid": False, "error": message, "reason": reason}

    try:
        token = extract_bearer(authorization)
        payload = verify_access_token(token)
    except APIError as exc:
        return invalid(str(exc.detail), exc.code)
    except TokenError as exc:
        return invalid(exc.message, exc.code)

    user_id = parse_id(payload["sub"])
    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        return invalid("User not found", "AUTH_USER_NOT_FOUND")

    return {"success": True, "valid": True, "user": accounts.public_user(user), "token": token}


@router.get("/me")
async def me(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Get current authenticated user information.

    Records a PROFILE_ACCESS event.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - user: public user projection

    Raises:
        Unauthorized / Forbidden: If the bearer token is missing or rejected
    """
    await record(ctx, str(user.id), EventType.PROFILE_ACCESS, "User fetched own profile data",
                 {"endpoint": "/api/auth/me"})
    return {"success": True, "user": accounts.public_user(user)}


@router.post("/refresh")
async def refresh(body: RefreshIn, ctx: RequestContext = Depends(get_request_context)):
    """
    Exchange a refresh token for a new access token.

    Raises:
        Unauthorized (401): If the refresh token is invalid, expired, or its user no longer exists
    """
    try:
        payload = verify_refresh_token(body.refreshToken)
    except TokenError as exc:
        raise Unauthorized(exc.message, code=exc.code)

    user_id = parse_id(payload["sub"])
    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        raise Unauthorized("User not found", code="AUTH_USER_NOT_FOUND")

    await record(ctx, str(user.id), EventType.TOKEN_REFRESHED, "Access token refreshed")
    return {"success": True, "token": accounts.issue_token(user)}


@router.get("/health")
async def auth_health():
    """
    Health of the authentication service: database reachability, signing
    key presence and number of registered users. 503 when the database is down.
    """
    try:
        await ping_db()
        user_count = await User.all().count()
    except Exception as exc:
        logger.exception("[auth] health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "service": "authentication",
                "status": "unhealthy",
                "error": type(exc).__name__,
                "timestamp": utc_now().isoformat(),
            },
        )
    return {
        "success": True,
        "service": "authentication",
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "database": "connected",
        "jwtConfigured": bool(security.JWT_SECRET),
        "userCount": user_count,
    }

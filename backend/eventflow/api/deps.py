# eventflow/api/deps.py
import logging

from fastapi import Header, Request

from eventflow.core.errors import Forbidden, Unauthorized
from eventflow.core.security import TokenError, verify_access_token
from eventflow.models.user import User
from eventflow.services.events import RequestContext, parse_id

logger = logging.getLogger("uvicorn.error")


def extract_bearer(authorization: str | None) -> str:
    """
    Pull the token out of an "Authorization: Bearer <token>" header.

    Raises:
        Unauthorized (401): If the header is missing (AUTH_REQUIRED)
        Forbidden (403): If the header is not a bearer credential (AUTH_TOKEN_MALFORMED)
    """
    if not authorization or not authorization.strip():
        raise Unauthorized("Access token not provided", code="AUTH_REQUIRED")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Forbidden("Invalid token format", code="AUTH_TOKEN_MALFORMED")
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Moves the request from unauthenticated to authenticated: extracts the
    bearer token, verifies it, and confirms the user still exists. On success
    the user id is stored on request.state.user_id so the audit middleware can
    attribute error responses.

    Args:
        request: FastAPI Request object
        authorization: Authorization header value

    Returns:
        User: The authenticated user object from database

    Raises:
        Unauthorized (401): No token (AUTH_REQUIRED) or user no longer exists (AUTH_USER_NOT_FOUND)
        Forbidden (403): Malformed (AUTH_TOKEN_MALFORMED), expired (AUTH_TOKEN_EXPIRED)
            or badly signed (AUTH_TOKEN_INVALID) token

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = extract_bearer(authorization)

    try:
        payload = verify_access_token(token)
    except TokenError as exc:
        logger.warning("[auth] rejected token: %s", exc.code)
        raise Forbidden(exc.message, code=exc.code)

    user_id = parse_id(payload["sub"])
    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        raise Unauthorized("User not found", code="AUTH_USER_NOT_FOUND")

    request.state.user_id = str(user.id)
    return user


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the caller's ip / user agent for audit events."""
    return RequestContext.from_request(request)

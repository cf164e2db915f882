# eventflow/api/routers/profile.py
from fastapi import APIRouter, Body, Depends

from eventflow.api.deps import get_current_user, get_request_context
from eventflow.models.event import EventType
from eventflow.models.user import User
from eventflow.schemas.profile import (
    CredentialsUpdateIn,
    DeleteAccountIn,
    PasswordUpdateIn,
    ProfilePictureIn,
    ProfileUpdateIn,
)
from eventflow.services import accounts
from eventflow.services.events import RequestContext, record

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Get the authenticated user's profile (records PROFILE_ACCESS).

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - user: public user projection
    """
    await record(ctx, str(user.id), EventType.PROFILE_ACCESS, "User viewed profile",
                 {"endpoint": "/api/profile"})
    return {"success": True, "user": accounts.public_user(user)}


@router.api_route("", methods=["PUT", "PATCH"])
async def update_profile(
    body: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Partially update the profile.

    Only the fields present in the body are applied (name, email, socialName,
    bio, profilePicture).

    Args:
        body: Partial profile fields
        user: Authenticated user (from dependency)

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - user: Updated public user projection

    Raises:
        ValidationFailed (400): If no field is provided or a field is invalid
        Conflict (400): If the new email already belongs to another account
    """
    changes = body.model_dump(exclude_unset=True)
    if changes.get("profilePicture") is not None:
        changes["profilePicture"] = str(changes["profilePicture"])
    user = await accounts.update_profile(user, changes, ctx)
    return {"success": True, "message": "Profile updated", "user": accounts.public_user(user)}


@router.put("/password")
async def update_password(
    body: PasswordUpdateIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Change the password after checking the current one.

    Raises:
        ValidationFailed (400): If currentPassword is wrong (INVALID_PASSWORD)
    """
    await accounts.update_password(user, body.currentPassword, body.newPassword, ctx)
    return {"success": True, "message": "Password updated"}


@router.put("/credentials")
async def update_credentials(
    body: CredentialsUpdateIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """Merge new keys into the user's free-form credentials map."""
    user = await accounts.update_credentials(user, body.credentials, ctx)
    return {"success": True, "message": "Credentials updated", "user": accounts.public_user(user)}


@router.put("/profile-picture")
async def update_profile_picture(
    body: ProfilePictureIn,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    user = await accounts.update_profile_picture(user, str(body.imageUrl), ctx)
    return {"success": True, "message": "Profile picture updated", "user": accounts.public_user(user)}


@router.delete("")
async def delete_account(
    body: DeleteAccountIn = Body(...),
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Permanently delete the account together with its events and notifications.

    Tokens issued before the deletion stop working: the authentication gate
    answers 401 AUTH_USER_NOT_FOUND for them.

    Args:
        body: Request body containing the current password

    Raises:
        ValidationFailed (400): If the password is wrong (INVALID_PASSWORD)
    """
    await accounts.delete_account(user, body.password, ctx)
    return {"success": True, "message": "Account deleted"}

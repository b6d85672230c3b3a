"""Profile, password and avatar endpoints for the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from src.api.dependencies import (
    get_audit_log_service,
    get_auth_service,
    get_avatar_service,
    get_credential_store,
    get_current_user,
)
from src.models.user import User
from src.schemas.auth import MessageResponse
from src.schemas.user import AvatarResponse, ChangePasswordRequest, ProfileResponse, ProfileUpdate
from src.services.audit_log import AuditAction, AuditLogService
from src.services.auth import AuthService
from src.services.avatar import AvatarService
from src.services.credentials import CredentialStore, clean_changes

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get the full profile of the current user."""
    return current_user


@router.patch("/profile", response_model=ProfileResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    audit: Annotated[AuditLogService, Depends(get_audit_log_service)],
):
    """Update profile fields. Email, password and role are not editable here."""
    changes = clean_changes(profile_data.model_dump(exclude_unset=True))
    old_values = {key: getattr(current_user, key) for key in changes}

    user = store.update_fields(current_user.id, changes)

    if changes:
        audit.log(
            action=AuditAction.PROFILE_UPDATE,
            resource_type="user",
            resource_id=user.id,
            user_id=user.id,
            old_values=old_values,
            new_values=changes,
        )
    return user


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Change password after checking the current one."""
    auth.change_password(current_user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/avatar", response_model=AvatarResponse)
def upload_avatar(
    current_user: Annotated[User, Depends(get_current_user)],
    avatars: Annotated[AvatarService, Depends(get_avatar_service)],
    audit: Annotated[AuditLogService, Depends(get_audit_log_service)],
    avatar: UploadFile = File(...),
):
    """Upload or replace the current user's avatar."""
    avatar_url = avatars.update_avatar(current_user.id, avatar.file, avatar.content_type)
    audit.log(
        action=AuditAction.AVATAR_UPLOAD,
        resource_type="user",
        resource_id=current_user.id,
        user_id=current_user.id,
        new_values={"avatar_url": avatar_url},
    )
    return AvatarResponse(message="Avatar uploaded successfully", avatar_url=avatar_url)


@router.delete("/avatar", response_model=MessageResponse)
def delete_avatar(
    current_user: Annotated[User, Depends(get_current_user)],
    avatars: Annotated[AvatarService, Depends(get_avatar_service)],
    audit: Annotated[AuditLogService, Depends(get_audit_log_service)],
):
    """Remove the current user's avatar."""
    removed = avatars.delete_avatar(current_user.id)
    if removed:
        audit.log(
            action=AuditAction.AVATAR_DELETE,
            resource_type="user",
            resource_id=current_user.id,
            user_id=current_user.id,
            old_values={"avatar_url": removed},
        )
    return MessageResponse(message="Avatar deleted successfully")

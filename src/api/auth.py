"""Authentication API endpoints.

Handlers that hash or verify passwords are plain ``def`` so FastAPI runs them
in its threadpool instead of on the event loop.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_auth_service, get_current_user
from src.models.user import User
from src.schemas.auth import (
    AuthResponse,
    EmailRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenPairResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from src.services.auth import AuthService
from src.tasks.email import send_password_reset_email, send_verification_email

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

RESEND_MESSAGE = "If an account with this email exists, a verification email has been sent."
FORGOT_MESSAGE = "If an account with this email exists, a password reset email has been sent."


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Register a new user and send the verification email."""
    user, token = auth.register(user_data.email, user_data.password, user_data.name)
    send_verification_email.delay(user.email, user.name, token)

    return RegisterResponse(
        message="User registered successfully. Please check your email for verification.",
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    request: Request,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Login with email and password."""
    user, tokens = auth.login(
        credentials.email,
        credentials.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenPairResponse(
            access_token=tokens.access_token, refresh_token=tokens.refresh_token
        ),
    )


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    body: VerifyEmailRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Consume an email verification token."""
    user = auth.verify_email(body.token)
    return VerifyEmailResponse(
        message="Email verified successfully! You can now log in.",
        user=UserResponse.model_validate(user),
    )


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    body: EmailRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Issue a new verification token, invalidating the previous one."""
    issued = auth.resend_verification(body.email)
    if issued is not None:
        user, token = issued
        send_verification_email.delay(user.email, user.name, token)
    return MessageResponse(message=RESEND_MESSAGE)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: EmailRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Start a password reset."""
    issued = auth.forgot_password(body.email)
    if issued is not None:
        user, token = issued
        send_password_reset_email.delay(user.email, user.name, token)
    return MessageResponse(message=FORGOT_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Set a new password with a reset token."""
    auth.reset_password(body.token, body.new_password)
    return MessageResponse(
        message="Password reset successfully! You can now log in with your new password."
    )


@router.post("/refresh-token", response_model=TokenPairResponse)
def refresh_token(
    body: RefreshTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Exchange a refresh token for a new access/refresh pair."""
    tokens = auth.refresh(body.refresh_token)
    return TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard its tokens)."""
    return MessageResponse(message="Logged out successfully")

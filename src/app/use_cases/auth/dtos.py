"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from pydantic import BaseModel

from src.domain.entities import User


# ============================================================================
# Command DTOs
# ============================================================================


class SignupCommand(BaseModel):
    """
    Signup command - represents validated signup intent

    Created by API layer after request validation passes.
    Contains only business-relevant data (no HTTP concerns).
    """

    email: str
    password: str
    display_name: str


# ============================================================================
# Response DTOs
# ============================================================================


class AccountInfo(BaseModel):
    """Public account fields (never the password hash)"""

    id: str
    email: str
    display_name: str
    email_verified: bool

    @classmethod
    def from_user(cls, user: User) -> "AccountInfo":
        return cls(
            id=str(user.id),
            email=user.email,
            display_name=user.display_name,
            email_verified=user.email_verified,
        )


class SignupResponse(BaseModel):
    """Response for signup use case"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    account: AccountInfo


class LoginResponse(BaseModel):
    """Response for user login use case"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    account: AccountInfo


class RefreshTokenResponse(BaseModel):
    """Response for refresh token use case (rotated refresh token included)"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    status: str
    message: str


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    status: str
    message: str


class ConfirmPasswordResetResponse(BaseModel):
    """Response for confirm password reset use case"""

    status: str
    message: str


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    status: str
    message: str


class ResendVerificationResponse(BaseModel):
    """Response for resend verification email use case"""

    status: str
    message: str

"""
Authentication Use Cases

All authentication-related business logic.
"""

from .signup_use_case import SignupUseCase
from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .resend_verification_use_case import ResendVerificationUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .get_current_account_use_case import GetCurrentAccountUseCase
from .password_policy import validate_password_strength
from .settings import AuthSettings
from .dtos import (
    SignupCommand,
    AccountInfo,
    SignupResponse,
    LoginResponse,
    RefreshTokenResponse,
    LogoutResponse,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
    VerifyEmailResponse,
    ResendVerificationResponse,
)

__all__ = [
    # Use Cases
    "SignupUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "VerifyEmailUseCase",
    "ResendVerificationUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    "GetCurrentAccountUseCase",
    # Policy and settings
    "validate_password_strength",
    "AuthSettings",
    # DTOs - Commands
    "SignupCommand",
    # DTOs - Responses
    "AccountInfo",
    "SignupResponse",
    "LoginResponse",
    "RefreshTokenResponse",
    "LogoutResponse",
    "RequestPasswordResetResponse",
    "ConfirmPasswordResetResponse",
    "VerifyEmailResponse",
    "ResendVerificationResponse",
]

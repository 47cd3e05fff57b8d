from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.api.utils.jwt import TokenService
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    AccountInfo,
    AuthSettings,
    SignupCommand,
    SignupResponse,
    SignupUseCase,
    LoginUseCase,
    RefreshTokenUseCase,
    LogoutUseCase,
    VerifyEmailUseCase,
    ResendVerificationUseCase,
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
    GetCurrentAccountUseCase,
    LoginResponse,
    RefreshTokenResponse,
    LogoutResponse,
    VerifyEmailResponse,
    ResendVerificationResponse,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)
from src.depends import (
    get_auth_settings,
    get_current_user_id,
    get_lockout_policy,
    get_notification_dispatcher,
    get_password_hasher,
    get_token_service,
    get_token_store,
    get_unit_of_work,
)
from src.domain.lockout import LockoutPolicy

router = APIRouter(prefix="/auth", tags=["Authentication"])


class SignupRequest(BaseModel):
    """
    Signup HTTP request payload

    Validates the shape of the request before converting to SignupCommand.
    Password strength is a business rule and is checked by the use case.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")
    display_name: str = Field(..., min_length=1, max_length=255, description="Display name")


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse)
async def signup(
    request: SignupRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    token_store: ITokenStore = Depends(get_token_store),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    User Signup

    Creates a new account and returns an access token and a refresh token.

    Raises:
        - 400 Bad Request: Weak password
        - 409 Conflict: Email already registered
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
    """
    command = SignupCommand(
        email=request.email, password=request.password, display_name=request.display_name
    )

    use_case = SignupUseCase(uow, hasher, tokens, token_store, notifications, settings)
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code == "EMAIL_TAKEN":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        elif error.code == "WEAK_PASSWORD":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


class LoginRequest(BaseModel):
    """Login HTTP request payload"""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    token_store: ITokenStore = Depends(get_token_store),
    lockout: LockoutPolicy = Depends(get_lockout_policy),
):
    """
    User Login

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 423 Locked: Too many failed attempts (details.minutes_left)
    """
    use_case = LoginUseCase(uow, hasher, tokens, token_store, lockout)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_CREDENTIALS":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        elif error.code == "ACCOUNT_LOCKED":
            raise ClientError(error, status_code=status.HTTP_423_LOCKED)
        raise ServerError(error)

    return result.value


class RefreshRequest(BaseModel):
    """Refresh token HTTP request payload"""

    refresh_token: str = Field(..., description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse)
async def refresh(
    request: RefreshRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    tokens: TokenService = Depends(get_token_service),
    token_store: ITokenStore = Depends(get_token_store),
):
    """
    Refresh Tokens

    Exchanges a refresh token for a new access token and a rotated refresh
    token. Reusing a refresh token revokes its whole family.

    Raises:
        - 401 Unauthorized: Invalid, expired, revoked or reused token
    """
    use_case = RefreshTokenUseCase(uow, tokens, token_store)
    result = await use_case.execute(request.refresh_token)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_OR_EXPIRED_TOKEN":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ServerError(error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: RefreshRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    tokens: TokenService = Depends(get_token_service),
    token_store: ITokenStore = Depends(get_token_store),
):
    """Revokes the refresh token family of the session. Always returns 200."""
    use_case = LogoutUseCase(uow, tokens, token_store)
    result = await use_case.execute(request.refresh_token)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


class VerifyEmailRequest(BaseModel):
    """Verify email HTTP request payload"""

    token: str = Field(..., min_length=1, description="Email verification token")


@router.post("/verify-email", status_code=status.HTTP_200_OK, response_model=VerifyEmailResponse)
async def verify_email(request: VerifyEmailRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Email Verification

    Raises:
        - 400 Bad Request: Invalid token
        - 410 Gone: Expired token
    """
    use_case = VerifyEmailUseCase(uow)
    result = await use_case.execute(request.token)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_TOKEN":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "TOKEN_EXPIRED":
            raise ClientError(error, status_code=status.HTTP_410_GONE)
        raise ServerError(error)

    return result.value


class EmailRequest(BaseModel):
    """Payload of the endpoints that only take an email address"""

    email: EmailStr = Field(..., description="User email address")


@router.post(
    "/resend-verification",
    status_code=status.HTTP_200_OK,
    response_model=ResendVerificationResponse,
)
async def resend_verification(
    request: EmailRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Resend Verification Email

    Same response whether or not the email is registered.
    """
    use_case = ResendVerificationUseCase(uow, notifications, settings)
    result = await use_case.execute(request.email)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.post(
    "/forgot-password",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
)
async def forgot_password(
    request: EmailRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_store: ITokenStore = Depends(get_token_store),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Request Password Reset

    Sends a reset link if the email is registered. The response never
    reveals whether it is.
    """
    use_case = RequestPasswordResetUseCase(uow, hasher, token_store, notifications, settings)
    result = await use_case.execute(request.email)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


class ResetPasswordRequest(BaseModel):
    """Reset password HTTP request payload"""

    token: str = Field(..., min_length=1, description="Password reset token from the reset link")
    new_password: str = Field(..., min_length=1, description="New password")


@router.post(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPasswordResetResponse,
)
async def reset_password(
    request: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    token_store: ITokenStore = Depends(get_token_store),
    lockout: LockoutPolicy = Depends(get_lockout_policy),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Confirm Password Reset

    Raises:
        - 400 Bad Request: Unknown token or weak password
        - 409 Conflict: Token already used
        - 410 Gone: Token expired
    """
    use_case = ConfirmPasswordResetUseCase(
        uow, hasher, tokens, token_store, lockout, notifications, settings
    )
    result = await use_case.execute(request.token, request.new_password)

    if result.is_err():
        error = result.error
        if error.code in ("RESET_TOKEN_NOT_FOUND", "WEAK_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "RESET_TOKEN_EXPIRED":
            raise ClientError(error, status_code=status.HTTP_410_GONE)
        elif error.code == "RESET_TOKEN_ALREADY_USED":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=AccountInfo)
async def me(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Returns the account the access token belongs to"""
    use_case = GetCurrentAccountUseCase(uow)
    result = await use_case.execute(user_id)

    if result.is_err():
        error = result.error
        if error.code == "USER_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ServerError(error)

    return result.value

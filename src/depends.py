from uuid import UUID

from fastapi import BackgroundTasks, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.libs.result import Error
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.utils.jwt import ACCESS, TokenService
from src.app.services.notification_service import INotificationService, NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_store import ITokenStore
from src.app.use_cases.auth import AuthSettings
from src.domain.lockout import LockoutPolicy

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


# Process-wide services are built once in create_app and kept on app.state


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_store(request: Request) -> ITokenStore:
    return request.app.state.token_store


def get_notification_service(request: Request) -> INotificationService:
    return request.app.state.notification_service


def get_lockout_policy(request: Request) -> LockoutPolicy:
    return request.app.state.lockout_policy


def get_auth_settings(request: Request) -> AuthSettings:
    return request.app.state.auth_settings


def get_notification_dispatcher(
    background_tasks: BackgroundTasks,
    notifier: INotificationService = Depends(get_notification_service),
    settings: AuthSettings = Depends(get_auth_settings),
) -> NotificationDispatcher:
    """Notifications of this request, sent after the response has gone out"""
    return NotificationDispatcher(
        notifier, background_tasks.add_task, settings.notify_timeout_seconds
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> UUID:
    """
    Dependency to extract and verify the access token from the Authorization header.

    Returns:
        Id of the account the token was issued to

    Raises:
        ClientError: 401 if the header is missing or the token is invalid or expired
    """
    unauthorized = Error("UNAUTHORIZED", "Invalid or expired access token")
    if credentials is None:
        raise ClientError(unauthorized, status_code=status.HTTP_401_UNAUTHORIZED)

    verified = tokens.verify(credentials.credentials, expected_type=ACCESS)
    if verified.is_err():
        raise ClientError(unauthorized, status_code=status.HTTP_401_UNAUTHORIZED)

    try:
        return UUID(verified.value.subject_id)
    except ValueError:
        raise ClientError(unauthorized, status_code=status.HTTP_401_UNAUTHORIZED)

"""
Signup Use Case

Creates an account and signs it in.
"""

import logging

from sqlalchemy.exc import IntegrityError

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import TokenService
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import normalize_email, utcnow
from src.domain.entities import AuditAction, AuditEvent, User
from .dtos import AccountInfo, SignupCommand, SignupResponse
from .password_policy import validate_password_strength
from .settings import AuthSettings
from .tokens import create_email_verification, issue_token_pair

logger = logging.getLogger(__name__)


class SignupUseCase:
    """
    Use case for account registration.

    Business Rules:
    - Password strength is checked before anything is read or written
    - Email is stored trimmed and lower-cased and must be unique
    - Password is stored as a bcrypt hash only
    - New accounts start unverified with a zeroed lockout counter
    - A verification link is queued after commit; delivery failure does not
      fail the signup
    - The new account is signed in (access + refresh token)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        tokens: TokenService,
        token_store: ITokenStore,
        notifications: NotificationDispatcher,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.hasher = hasher
        self.tokens = tokens
        self.token_store = token_store
        self.notifications = notifications
        self.settings = settings

    @staticmethod
    def _email_taken() -> Error:
        return Error("EMAIL_TAKEN", "An account with this email already exists")

    async def execute(self, command: SignupCommand) -> Result[SignupResponse]:
        """
        Execute signup use case.

        Args:
            command: Validated signup data

        Returns:
            Result with SignupResponse, or Error

        Errors:
            - WEAK_PASSWORD: Password does not meet strength rules
            - EMAIL_TAKEN: Email already registered
        """
        strength = validate_password_strength(command.password)
        if strength.is_err():
            return Return.err(strength.error)

        email = normalize_email(command.email)
        now = utcnow()

        async with self.uow:
            existing = await self.uow.users.get_by_email(email)
            if existing is not None:
                return Return.err(self._email_taken())

            password_hash = await self.hasher.hash_async(command.password)
            user = User(
                email=email,
                password_hash=password_hash,
                display_name=command.display_name.strip(),
                email_verified=False,
                failed_login_attempts=0,
            )

            # Unique index decides concurrent signups for the same email
            try:
                user = await self.uow.users.create(user)
            except IntegrityError:
                logger.info(f"Concurrent signup lost the race for {email}")
                return Return.err(self._email_taken())

            verification_token = await create_email_verification(
                self.uow, user, self.settings.verification_token_ttl, now
            )

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.signup.value,
                    event_metadata={"email": email},
                )
            )
            await self.uow.commit()

        logger.info(f"Account created: {user.id}")

        access_token, refresh_token = await issue_token_pair(
            self.tokens, self.token_store, user
        )

        self.notifications.email_verification(
            user.email, self.settings.verification_link(verification_token)
        )

        return Return.ok(
            SignupResponse(
                access_token=access_token,
                refresh_token=refresh_token,
                account=AccountInfo.from_user(user),
            )
        )

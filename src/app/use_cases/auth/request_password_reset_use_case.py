"""
Request Password Reset Use Case

Issues a password reset link without revealing whether the email is registered.
"""

import logging
import secrets

from src.libs.result import Result, Return
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.services.reset_token_manager import ResetTokenManager
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import normalize_email, utcnow
from src.domain.entities import AuditAction, AuditEvent
from .dtos import RequestPasswordResetResponse
from .settings import AuthSettings

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "If an account with that email exists, a password reset link has been sent."

RATE_LIMIT_WINDOW_SECONDS = 3600


class RequestPasswordResetUseCase:
    """
    Use case for requesting a password reset.

    Business Rules:
    - Response is identical for registered and unknown emails
    - Unknown emails and rate-limited requests spend the same bcrypt work
      as issuing a token, so timing does not reveal the difference
    - At most reset_requests_per_hour tokens per account per hour
    - A new token invalidates every earlier token of the account
    - The link is queued after commit and sent once the response is out,
      so the transport adds no latency to the registered-email path
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        token_store: ITokenStore,
        notifications: NotificationDispatcher,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.hasher = hasher
        self.token_store = token_store
        self.notifications = notifications
        self.settings = settings
        self.reset_tokens = ResetTokenManager(uow, hasher, settings.reset_token_ttl)

    async def _spend_hash_work(self) -> None:
        await self.hasher.hash_async(secrets.token_hex(32))

    async def execute(self, email: str) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Email address to send the reset link to

        Returns:
            Result with the generic RequestPasswordResetResponse (never an Error)
        """
        response = RequestPasswordResetResponse(status="sent", message=GENERIC_MESSAGE)
        email = normalize_email(email)
        now = utcnow()

        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is None:
                await self._spend_hash_work()
                logger.info("Password reset requested for an unknown email")
                return Return.ok(response)

            attempts = await self.token_store.hit_rate_limit(
                f"password_reset:{user.id}", RATE_LIMIT_WINDOW_SECONDS
            )
            if attempts > self.settings.reset_requests_per_hour:
                await self._spend_hash_work()
                logger.warning(f"Password reset rate limit hit for user {user.id}")
                return Return.ok(response)

            raw_token = await self.reset_tokens.create_reset(user.id, now)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.password_reset_requested.value,
                    event_metadata={"email": email},
                )
            )
            await self.uow.commit()

        self.notifications.password_reset(user.email, self.settings.reset_link(raw_token))

        return Return.ok(response)

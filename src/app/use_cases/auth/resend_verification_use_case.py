"""
Resend Verification Use Case

Issues a fresh email verification link.
"""

from src.libs.result import Result, Return
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import normalize_email, utcnow
from src.domain.entities import AuditAction, AuditEvent
from .dtos import ResendVerificationResponse
from .settings import AuthSettings
from .tokens import create_email_verification


class ResendVerificationUseCase:
    """
    Use case for resending the verification email.

    Business Rules:
    - Response is the same whether or not the email exists or is verified
    - Pending verification tokens of the account are replaced
    - The link is queued after commit and never awaited here
    """

    def __init__(
        self,
        uow: UnitOfWork,
        notifications: NotificationDispatcher,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.notifications = notifications
        self.settings = settings

    async def execute(self, email: str) -> Result[ResendVerificationResponse]:
        response = ResendVerificationResponse(
            status="sent",
            message="If the email is registered and not yet verified, a new verification link has been sent.",
        )
        now = utcnow()

        async with self.uow:
            user = await self.uow.users.get_by_email(normalize_email(email))
            if user is None or user.email_verified:
                return Return.ok(response)

            await self.uow.email_verifications.delete_pending_by_user_id(user.id)
            raw_token = await create_email_verification(
                self.uow, user, self.settings.verification_token_ttl, now
            )
            await self.uow.audit_events.create(
                AuditEvent(user_id=user.id, action=AuditAction.verification_resent.value)
            )
            await self.uow.commit()

        self.notifications.email_verification(
            user.email, self.settings.verification_link(raw_token)
        )
        return Return.ok(response)

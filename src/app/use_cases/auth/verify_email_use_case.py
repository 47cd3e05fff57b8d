"""
Verify Email Use Case

Marks an account's email as verified using the token from the verification link.
"""

import logging

from src.libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditAction, AuditEvent
from .dtos import VerifyEmailResponse
from .tokens import hash_verification_token

logger = logging.getLogger(__name__)


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - Token is looked up by its SHA-256 hash
    - Token must not be expired (24 hour window by default)
    - Verifying twice with the same token is not an error
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token: str) -> Result[VerifyEmailResponse]:
        """
        Execute verify email use case.

        Errors:
            - INVALID_TOKEN: Token not found
            - TOKEN_EXPIRED: Token has expired
        """
        now = utcnow()

        async with self.uow:
            verification = await self.uow.email_verifications.get_by_token_hash(
                hash_verification_token(token)
            )
            if verification is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid verification token"))

            if verification.verified_at is not None:
                return Return.ok(
                    VerifyEmailResponse(status="verified", message="Email already verified")
                )

            if now > verification.expires_at:
                return Return.err(
                    Error(
                        "TOKEN_EXPIRED",
                        "Verification token has expired. Please request a new one.",
                    )
                )

            user = await self.uow.users.get_by_id(verification.user_id)
            if user is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid verification token"))

            user.email_verified = True
            await self.uow.users.update(user)

            verification.verified_at = now
            await self.uow.email_verifications.update(verification)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.email_verified.value,
                    event_metadata={"email": verification.email},
                )
            )
            await self.uow.commit()

        logger.info(f"Email verified for user {user.id}")
        return Return.ok(
            VerifyEmailResponse(status="verified", message="Email successfully verified")
        )

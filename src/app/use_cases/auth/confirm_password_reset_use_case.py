"""
Confirm Password Reset Use Case

Redeems a reset token and sets a new password.
"""

import logging

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import TokenService
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.services.reset_token_manager import ResetTokenManager
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditAction, AuditEvent
from src.domain.lockout import LockoutPolicy, LockoutState
from .dtos import ConfirmPasswordResetResponse
from .password_policy import validate_password_strength
from .settings import AuthSettings

logger = logging.getLogger(__name__)


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - New password must pass the strength rules before the token is touched
    - Token must exist, be unexpired and unused; an expired token is deleted
    - Password change and token consumption commit together
    - The reset clears the failed-login counter and any lock
    - Every refresh token family of the account is revoked afterwards
    - A password-changed notice is queued for the account owner
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        tokens: TokenService,
        token_store: ITokenStore,
        lockout: LockoutPolicy,
        notifications: NotificationDispatcher,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.hasher = hasher
        self.tokens = tokens
        self.token_store = token_store
        self.lockout = lockout
        self.notifications = notifications
        self.reset_tokens = ResetTokenManager(uow, hasher, settings.reset_token_ttl)

    async def execute(self, token: str, new_password: str) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Raw reset token from the reset link
            new_password: New password to set

        Returns:
            Result with confirmation status, or Error

        Errors:
            - WEAK_PASSWORD: Password does not meet strength rules
            - RESET_TOKEN_NOT_FOUND: Token unknown or does not match
            - RESET_TOKEN_EXPIRED: Token has expired
            - RESET_TOKEN_ALREADY_USED: Token has already been used
        """
        strength = validate_password_strength(new_password)
        if strength.is_err():
            return Return.err(strength.error)

        now = utcnow()

        async with self.uow:
            redeemed = await self.reset_tokens.redeem(token, now)
            if redeemed.is_err():
                if redeemed.error.code == "RESET_TOKEN_EXPIRED":
                    # Keep the deletion of the expired record
                    await self.uow.commit()
                return Return.err(redeemed.error)

            reset_token = redeemed.value
            user = await self.uow.users.get_by_id(reset_token.user_id)
            if user is None:
                return Return.err(
                    Error(
                        "RESET_TOKEN_NOT_FOUND",
                        "Invalid reset token. Please request a new password reset.",
                    )
                )

            user.password_hash = await self.hasher.hash_async(new_password)
            cleared = self.lockout.on_success(LockoutState.of(user))
            user.failed_login_attempts = cleared.failed_count
            user.locked_until = cleared.locked_until
            user.last_failed_login_at = None
            await self.uow.users.update(user)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.password_reset_confirmed.value,
                    event_metadata={"token_id": str(reset_token.id)},
                )
            )
            await self.uow.commit()

        revoked = await self.token_store.revoke_user_families(
            user.id, int(self.tokens.refresh_ttl.total_seconds())
        )
        logger.info(f"Password reset for user {user.id}, {revoked} refresh families revoked")
        self.notifications.password_changed(user.email)

        return Return.ok(
            ConfirmPasswordResetResponse(
                status="success",
                message="Password has been reset successfully. You can now log in with your new password.",
            )
        )

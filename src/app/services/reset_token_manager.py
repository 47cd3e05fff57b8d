"""
Reset Token Manager

Issues and redeems single-use password reset tokens.
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.password_hasher import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import PasswordResetToken

TOKEN_SEPARATOR = "."


class ResetTokenManager:
    """
    Password reset token protocol.

    Business Rules:
    - Raw token is "<lookup_id>.<secret>", secret carries 256 bits of entropy
    - Only the bcrypt hash of the secret is stored, so a database leak alone
      cannot be turned into a working reset link
    - lookup_id is a non-secret index key: redemption is one indexed read plus
      one hash verification
    - Creating a token deletes every earlier token of the same user
    - Redemption order: not found -> expired (record deleted) -> already used
    - Marking as used happens in the caller's unit of work, so it commits
      together with the password change it authorizes
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        ttl: timedelta = timedelta(hours=1),
    ):
        self.uow = uow
        self.hasher = hasher
        self.ttl = ttl

    @staticmethod
    def _split(raw_token: str) -> Optional[Tuple[str, str]]:
        lookup_id, sep, secret = raw_token.partition(TOKEN_SEPARATOR)
        if not sep or not lookup_id or not secret:
            return None
        return lookup_id, secret

    async def create_reset(self, user_id: UUID, now: datetime) -> str:
        """
        Create a reset token for a user.

        Returns:
            The raw token. It is never stored and must only travel through
            the notification channel.
        """
        lookup_id = secrets.token_hex(8)
        secret = secrets.token_hex(32)
        token_hash = await self.hasher.hash_async(secret)

        await self.uow.password_reset_tokens.delete_by_user_id(user_id)
        await self.uow.password_reset_tokens.create(
            PasswordResetToken(
                user_id=user_id,
                lookup_id=lookup_id,
                token_hash=token_hash,
                expires_at=now + self.ttl,
            )
        )
        return f"{lookup_id}{TOKEN_SEPARATOR}{secret}"

    async def redeem(self, raw_token: str, now: datetime) -> Result[PasswordResetToken]:
        """
        Redeem a raw reset token.

        Errors:
            - RESET_TOKEN_NOT_FOUND: Token unknown or does not match
            - RESET_TOKEN_EXPIRED: Token has expired (record is deleted)
            - RESET_TOKEN_ALREADY_USED: Token has already been redeemed
        """
        parts = self._split(raw_token)
        record = None
        if parts is not None:
            lookup_id, secret = parts
            record = await self.uow.password_reset_tokens.get_by_lookup_id(lookup_id)
            if record is not None and not await self.hasher.verify_async(secret, record.token_hash):
                record = None

        if record is None:
            return Return.err(
                Error(
                    "RESET_TOKEN_NOT_FOUND",
                    "Invalid reset token. Please request a new password reset.",
                )
            )

        if now > record.expires_at:
            await self.uow.password_reset_tokens.delete(record)
            return Return.err(
                Error(
                    "RESET_TOKEN_EXPIRED",
                    "Reset token has expired. Please request a new password reset.",
                )
            )

        # Conditional update closes the window between the check and the write
        if record.used_at is not None or not await self.uow.password_reset_tokens.mark_used(
            record.id, now
        ):
            return Return.err(
                Error(
                    "RESET_TOKEN_ALREADY_USED",
                    "This reset token has already been used. Please request a new password reset.",
                )
            )

        return Return.ok(record)

"""
Refresh Token Use Case

Exchanges a refresh token for a new access token and a rotated refresh token.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import REFRESH, TokenService
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, AuditEvent
from .dtos import RefreshTokenResponse
from .tokens import issue_token_pair

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for refreshing tokens.

    Business Rules:
    - Only a valid, unexpired token of type "refresh" is accepted
    - Each refresh token can be exchanged once; its jti is consumed
    - Presenting an already consumed refresh token revokes its whole family,
      so a stolen token stops working for both parties
    - The rotated refresh token stays in the same family
    - Every failure is reported as INVALID_OR_EXPIRED_TOKEN
    """

    def __init__(self, uow: UnitOfWork, tokens: TokenService, token_store: ITokenStore):
        self.uow = uow
        self.tokens = tokens
        self.token_store = token_store

    @staticmethod
    def _invalid() -> Error:
        return Error("INVALID_OR_EXPIRED_TOKEN", "Invalid or expired refresh token")

    async def execute(self, refresh_token: str) -> Result[RefreshTokenResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: Refresh token issued at login, signup or a previous refresh

        Returns:
            Result with RefreshTokenResponse containing a new token pair, or Error
        """
        verified = self.tokens.verify(refresh_token, expected_type=REFRESH)
        if verified.is_err():
            logger.info(f"Refresh rejected: {verified.error.code}")
            return Return.err(self._invalid())

        claims = verified.value
        if not claims.family_id:
            return Return.err(self._invalid())

        try:
            user_id = UUID(claims.subject_id)
        except ValueError:
            return Return.err(self._invalid())

        if await self.token_store.is_family_revoked(claims.family_id):
            return Return.err(self._invalid())

        family_ttl = int(self.tokens.refresh_ttl.total_seconds())
        remaining = int((claims.expires_at - datetime.now(UTC)).total_seconds())

        async with self.uow:
            if not await self.token_store.consume_refresh_token(claims.jti, max(remaining, 1)):
                await self.token_store.revoke_family(claims.family_id, family_ttl)
                logger.warning(
                    f"Refresh token reuse detected for user {user_id}, family {claims.family_id} revoked"
                )
                await self.uow.audit_events.create(
                    AuditEvent(
                        user_id=user_id,
                        action=AuditAction.refresh_token_reuse.value,
                        event_metadata={"family_id": claims.family_id},
                    )
                )
                await self.uow.commit()
                return Return.err(self._invalid())

            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(self._invalid())

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.token_refresh.value,
                    event_metadata={"family_id": claims.family_id},
                )
            )
            await self.uow.commit()

        access_token, new_refresh_token = await issue_token_pair(
            self.tokens, self.token_store, user, family_id=claims.family_id
        )

        return Return.ok(
            RefreshTokenResponse(access_token=access_token, refresh_token=new_refresh_token)
        )

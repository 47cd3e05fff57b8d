"""
Logout Use Case

Ends the session a refresh token belongs to.
"""

import logging
from uuid import UUID

from src.libs.result import Result, Return
from src.api.utils.jwt import REFRESH, TokenService
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, AuditEvent
from .dtos import LogoutResponse

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Use case for logout.

    Business Rules:
    - The refresh token family is revoked, so no token of this session
      can be refreshed again
    - Access tokens already issued stay valid until they expire
    - Always succeeds; an unusable token has nothing left to revoke
    """

    def __init__(self, uow: UnitOfWork, tokens: TokenService, token_store: ITokenStore):
        self.uow = uow
        self.tokens = tokens
        self.token_store = token_store

    async def execute(self, refresh_token: str) -> Result[LogoutResponse]:
        response = LogoutResponse(status="success", message="Logged out successfully")

        verified = self.tokens.verify(refresh_token, expected_type=REFRESH)
        if verified.is_err() or not verified.value.family_id:
            return Return.ok(response)

        claims = verified.value
        await self.token_store.revoke_family(
            claims.family_id, int(self.tokens.refresh_ttl.total_seconds())
        )

        try:
            user_id = UUID(claims.subject_id)
        except ValueError:
            user_id = None

        async with self.uow:
            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user_id,
                    action=AuditAction.logout.value,
                    event_metadata={"family_id": claims.family_id},
                )
            )
            await self.uow.commit()

        logger.info(f"Refresh family {claims.family_id} revoked on logout")
        return Return.ok(response)

from typing import Optional
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.email_verification_repository import IEmailVerificationRepository
from src.domain.entities import EmailVerification


class EmailVerificationRepository(IEmailVerificationRepository):
    """EmailVerification repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, verification: EmailVerification) -> EmailVerification:
        """Create a new email verification record"""
        self.session.add(verification)
        await self.session.flush()
        await self.session.refresh(verification)
        return verification

    async def get_by_token_hash(self, token_hash: str) -> Optional[EmailVerification]:
        """Get email verification by token hash"""
        stmt = select(EmailVerification).where(EmailVerification.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.first()

    async def update(self, verification: EmailVerification) -> EmailVerification:
        """Update existing email verification"""
        self.session.add(verification)
        await self.session.flush()
        await self.session.refresh(verification)
        return verification

    async def delete_pending_by_user_id(self, user_id: UUID) -> int:
        """Delete unverified records of a user"""
        stmt = delete(EmailVerification).where(
            EmailVerification.user_id == user_id,
            EmailVerification.verified_at.is_(None),
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import PasswordResetToken


class PasswordResetTokenRepository(IPasswordResetTokenRepository):
    """PasswordResetToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_lookup_id(self, lookup_id: str) -> Optional[PasswordResetToken]:
        """Get password reset token by its non-secret lookup id"""
        stmt = select(PasswordResetToken).where(PasswordResetToken.lookup_id == lookup_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def delete(self, token: PasswordResetToken) -> None:
        """Delete a single password reset token"""
        await self.session.delete(token)
        await self.session.flush()

    async def delete_by_user_id(self, user_id: UUID) -> int:
        """Delete every reset token of a user"""
        stmt = delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        """Set used_at only if the token is still unused"""
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id, PasswordResetToken.used_at.is_(None))
            .values(used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

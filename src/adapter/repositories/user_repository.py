from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import case, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_repository import IUserRepository
from src.domain.base import utcnow
from src.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (normalized) email address"""
        stmt = select(User).where(User.email == email)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        user.updated_at = utcnow()
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def record_failed_login(
        self, user_id: UUID, now: datetime, max_attempts: int, lock_until: datetime
    ) -> Optional[User]:
        """
        Count one failed login in a single UPDATE.

        The WHERE clause skips accounts that are currently locked, so an attack
        against a locked account can never extend the lock. Column references
        on the right-hand side read the pre-update row, which keeps concurrent
        increments from being lost.
        """
        # A non-null locked_until that passed the WHERE clause is an expired lock
        new_count = case(
            (User.locked_until.is_not(None), 1),
            else_=User.failed_login_attempts + 1,
        )
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                or_(User.locked_until.is_(None), User.locked_until <= now),
            )
            .values(
                failed_login_attempts=new_count,
                last_failed_login_at=now,
                locked_until=case((new_count >= max_attempts, lock_until), else_=None),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

        refreshed = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        result = await self.session.exec(refreshed)
        return result.one_or_none()

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (normalized) email address"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def record_failed_login(
        self, user_id: UUID, now: datetime, max_attempts: int, lock_until: datetime
    ) -> Optional[User]:
        """
        Atomically count one failed login.

        Must be a single conditional update: rows that are currently locked
        are left untouched, a lock that has already expired restarts the
        count at 1, and reaching max_attempts sets locked_until.

        Returns:
            The user with refreshed lockout fields, or None if it no longer exists
        """
        pass

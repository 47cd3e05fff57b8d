from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import EmailVerification


class IEmailVerificationRepository(ABC):
    """EmailVerification repository interface - application layer"""

    @abstractmethod
    async def create(self, verification: EmailVerification) -> EmailVerification:
        """Create a new email verification record"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[EmailVerification]:
        """Get email verification by token hash"""
        pass

    @abstractmethod
    async def update(self, verification: EmailVerification) -> EmailVerification:
        """Update existing email verification"""
        pass

    @abstractmethod
    async def delete_pending_by_user_id(self, user_id: UUID) -> int:
        """Delete unverified records of a user. Returns count of deleted rows."""
        pass

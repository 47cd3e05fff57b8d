from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_lookup_id(self, lookup_id: str) -> Optional[PasswordResetToken]:
        """Get password reset token by its non-secret lookup id"""
        pass

    @abstractmethod
    async def delete(self, token: PasswordResetToken) -> None:
        """Delete a single password reset token"""
        pass

    @abstractmethod
    async def delete_by_user_id(self, user_id: UUID) -> int:
        """Delete every reset token of a user. Returns count of deleted rows."""
        pass

    @abstractmethod
    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        """Set used_at if still unused. Returns False if it was already used."""
        pass

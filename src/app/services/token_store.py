from abc import ABC, abstractmethod
from uuid import UUID


class ITokenStore(ABC):
    """
    Fast ephemeral store for refresh-token bookkeeping and rate limits.

    Refresh tokens are grouped into families: one family per signup/login,
    extended by every rotation. Revoking a family invalidates every refresh
    token ever issued in it.
    """

    @abstractmethod
    async def register_family(self, user_id: UUID, family_id: str, ttl_seconds: int) -> None:
        """Remember that family_id belongs to user_id (for bulk revocation)"""
        pass

    @abstractmethod
    async def is_family_revoked(self, family_id: str) -> bool:
        """True if the family has been revoked"""
        pass

    @abstractmethod
    async def revoke_family(self, family_id: str, ttl_seconds: int) -> None:
        """Revoke a single family"""
        pass

    @abstractmethod
    async def revoke_user_families(self, user_id: UUID, ttl_seconds: int) -> int:
        """Revoke every family of a user. Returns count of revoked families."""
        pass

    @abstractmethod
    async def consume_refresh_token(self, jti: str, ttl_seconds: int) -> bool:
        """
        Atomically mark a refresh token as used.

        Returns:
            True the first time a jti is consumed, False on any later attempt
        """
        pass

    @abstractmethod
    async def hit_rate_limit(self, key: str, window_seconds: int) -> int:
        """Count one hit in a fixed window. Returns hits so far in the window."""
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

import time
from typing import Dict, Set, Tuple
from uuid import UUID

from src.app.services.token_store import ITokenStore


class InMemoryTokenStore(ITokenStore):
    """
    Process-local token store (CACHE_BACKEND=memory).

    Suitable for tests and single-process development only. Operations do
    not await between check and write, which makes them atomic on one
    event loop.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._expiring: Dict[str, float] = {}
        self._user_families: Dict[str, Tuple[Set[str], float]] = {}
        self._counters: Dict[str, Tuple[int, float]] = {}

    def _alive(self, key: str) -> bool:
        expires_at = self._expiring.get(key)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._expiring[key]
            return False
        return True

    def _set(self, key: str, ttl_seconds: int) -> None:
        self._prune()
        self._expiring[key] = self._clock() + max(1, ttl_seconds)

    def _live_families(self, user_id: str) -> Set[str]:
        family_ids, expires_at = self._user_families.get(user_id, (set(), 0.0))
        return family_ids if expires_at > self._clock() else set()

    def _prune(self) -> None:
        """Drop every expired entry so memory stays bounded by live state"""
        now = self._clock()
        for key, expires_at in list(self._expiring.items()):
            if expires_at <= now:
                del self._expiring[key]
        for user_id, (_, expires_at) in list(self._user_families.items()):
            if expires_at <= now:
                del self._user_families[user_id]
        for key, (_, window_end) in list(self._counters.items()):
            if window_end <= now:
                del self._counters[key]

    async def register_family(self, user_id: UUID, family_id: str, ttl_seconds: int) -> None:
        # Like the Redis set, the whole index lives ttl_seconds past its last write
        key = str(user_id)
        family_ids = self._live_families(key)
        family_ids.add(family_id)
        self._prune()
        self._user_families[key] = (family_ids, self._clock() + max(1, ttl_seconds))

    async def is_family_revoked(self, family_id: str) -> bool:
        return self._alive(f"family_revoked:{family_id}")

    async def revoke_family(self, family_id: str, ttl_seconds: int) -> None:
        self._set(f"family_revoked:{family_id}", ttl_seconds)

    async def revoke_user_families(self, user_id: UUID, ttl_seconds: int) -> int:
        key = str(user_id)
        family_ids = self._live_families(key)
        self._user_families.pop(key, None)
        for family_id in family_ids:
            self._set(f"family_revoked:{family_id}", ttl_seconds)
        return len(family_ids)

    async def consume_refresh_token(self, jti: str, ttl_seconds: int) -> bool:
        key = f"used:{jti}"
        if self._alive(key):
            return False
        self._set(key, ttl_seconds)
        return True

    async def hit_rate_limit(self, key: str, window_seconds: int) -> int:
        self._prune()
        now = self._clock()
        count, window_end = self._counters.get(key, (0, 0.0))
        if window_end <= now:
            count, window_end = 0, now + window_seconds
        count += 1
        self._counters[key] = (count, window_end)
        return count

    async def close(self) -> None:
        self._expiring.clear()
        self._user_families.clear()
        self._counters.clear()

from uuid import UUID

import redis.asyncio as aioredis

from src.app.services.token_store import ITokenStore


class RedisTokenStore(ITokenStore):
    """Redis implementation of the refresh-token store"""

    def __init__(self, redis_url: str, *, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    @staticmethod
    def _user_families_key(user_id: UUID) -> str:
        return f"auth:user_families:{user_id}"

    @staticmethod
    def _family_revoked_key(family_id: str) -> str:
        return f"auth:refresh:family_revoked:{family_id}"

    @staticmethod
    def _used_key(jti: str) -> str:
        return f"auth:refresh:used:{jti}"

    async def register_family(self, user_id: UUID, family_id: str, ttl_seconds: int) -> None:
        key = self._user_families_key(user_id)
        pipe = self.client.pipeline()
        pipe.sadd(key, family_id)
        pipe.expire(key, max(1, ttl_seconds))
        await pipe.execute()

    async def is_family_revoked(self, family_id: str) -> bool:
        return bool(await self.client.exists(self._family_revoked_key(family_id)))

    async def revoke_family(self, family_id: str, ttl_seconds: int) -> None:
        await self.client.set(self._family_revoked_key(family_id), "1", ex=max(1, ttl_seconds))

    async def revoke_user_families(self, user_id: UUID, ttl_seconds: int) -> int:
        key = self._user_families_key(user_id)
        family_ids = await self.client.smembers(key)
        if not family_ids:
            return 0

        pipe = self.client.pipeline()
        for family_id in family_ids:
            pipe.set(self._family_revoked_key(family_id), "1", ex=max(1, ttl_seconds))
        pipe.delete(key)
        await pipe.execute()
        return len(family_ids)

    async def consume_refresh_token(self, jti: str, ttl_seconds: int) -> bool:
        # SET NX is the atomic "first one wins" between concurrent refreshes
        created = await self.client.set(self._used_key(jti), "1", ex=max(1, ttl_seconds), nx=True)
        return bool(created)

    async def hit_rate_limit(self, key: str, window_seconds: int) -> int:
        rate_key = f"rate:{key}"
        # The window is created with its TTL before counting, in one MULTI
        pipe = self.client.pipeline(transaction=True)
        pipe.set(rate_key, 0, ex=max(1, window_seconds), nx=True)
        pipe.incr(rate_key)
        _, count = await pipe.execute()
        return int(count)

    async def close(self) -> None:
        await self.client.aclose()

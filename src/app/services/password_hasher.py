"""
Password Hasher

bcrypt wrapper used for passwords and for password reset secrets.
"""

import asyncio
from typing import Optional

import bcrypt


class PasswordHasher:
    """
    One-way, salted, deliberately slow hashing.

    Business Rules:
    - bcrypt with a configurable cost factor (12 in production)
    - Every call to hash() uses a fresh random salt
    - verify() relies on bcrypt's constant-time comparison and returns False
      (never raises) for malformed digests
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    def hash(self, plaintext: str) -> str:
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, digest: Optional[str]) -> bool:
        if not digest:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError):
            # Not a bcrypt digest
            return False

    def dummy_verify(self, plaintext: str) -> None:
        """Spend the same time as a real verification, for unknown accounts."""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(self.rounds))
        try:
            bcrypt.checkpw(plaintext.encode("utf-8"), self._dummy_hash)
        except ValueError:
            pass

    async def hash_async(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash, plaintext)

    async def verify_async(self, plaintext: str, digest: Optional[str]) -> bool:
        return await asyncio.to_thread(self.verify, plaintext, digest)

    async def dummy_verify_async(self, plaintext: str) -> None:
        await asyncio.to_thread(self.dummy_verify, plaintext)

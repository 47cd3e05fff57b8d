"""
Helpers shared by the use cases that hand out credentials.
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import uuid4

from src.api.utils.jwt import TokenService
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import EmailVerification, User


async def issue_token_pair(
    tokens: TokenService,
    token_store: ITokenStore,
    user: User,
    family_id: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Issue an access token and a refresh token for a user.

    A new family is started unless family_id is given (rotation).

    Returns:
        Tuple of (access_token, refresh_token)
    """
    if family_id is None:
        family_id = uuid4().hex
    ttl_seconds = int(tokens.refresh_ttl.total_seconds())
    await token_store.register_family(user.id, family_id, ttl_seconds)

    access_token = tokens.issue_access(user.id, user.email)
    refresh_token = tokens.issue_refresh(user.id, user.email, family_id)
    return access_token, refresh_token


def hash_verification_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def create_email_verification(
    uow: UnitOfWork, user: User, ttl: timedelta, now: datetime
) -> str:
    """
    Store a new email verification record for a user.

    Returns:
        The raw token (only its SHA-256 hash is stored)
    """
    raw_token = secrets.token_urlsafe(32)
    await uow.email_verifications.create(
        EmailVerification(
            user_id=user.id,
            email=user.email,
            token_hash=hash_verification_token(raw_token),
            expires_at=now + ttl,
        )
    )
    return raw_token

"""
PasswordResetToken Entity

Outstanding single-use password reset requests.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - one outstanding password reset request.

    Business Rules:
    - Expires after 1 hour
    - The raw token is "<lookup_id>.<secret>"; only the bcrypt hash of the
      secret is stored, the lookup id is a non-secret index key
    - Single-use: used_at is set in the same transaction as the password change
    - At most one live record per user (older ones deleted on each request)
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id")
    lookup_id: str = Field(unique=True, index=True, max_length=32)
    token_hash: str = Field(max_length=60)  # Bcrypt output

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_password_reset_user_id", "user_id"),
        Index("idx_password_reset_expires_at", "expires_at"),
    )

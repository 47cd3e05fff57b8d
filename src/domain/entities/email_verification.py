"""
EmailVerification Entity

Email ownership proofs sent at signup.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class EmailVerification(SQLModel, table=True):
    """
    EmailVerification entity - one email verification link.

    Business Rules:
    - Expires after 24 hours
    - Token is SHA-256 hash of a secure random string
    - Resending replaces any outstanding, unverified records
    """

    __tablename__ = "email_verifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id")
    email: str = Field(max_length=255)
    token_hash: str = Field(max_length=64)  # SHA-256 output

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_email_verification_token_hash", "token_hash"),
        Index("idx_email_verification_user_id", "user_id"),
    )

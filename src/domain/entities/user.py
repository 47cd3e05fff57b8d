"""
User Entity

Represents a registered identity (the account behind every credential).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utcnow


class User(SQLModel, table=True):
    """
    User entity - a registered account.

    Business Rules:
    - Email is stored lowercase and must be unique across all users
    - Password stored as bcrypt hash, never returned to callers
    - failed_login_attempts and locked_until are reset on every successful
      login and every successful password reset
    - Never hard-deleted by the auth service
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: Optional[str] = Field(default=None, max_length=60)  # Bcrypt output is 60 chars
    display_name: str = Field(max_length=255)

    email_verified: bool = Field(default=False)

    # Lockout state
    failed_login_attempts: int = Field(default=0)
    last_failed_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    locked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

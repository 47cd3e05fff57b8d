"""
Auth Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

from .enums import AuditAction

from .user import User
from .password_reset_token import PasswordResetToken
from .email_verification import EmailVerification
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AuditAction",
    # Entities
    "User",
    "PasswordResetToken",
    "EmailVerification",
    "AuditEvent",
]

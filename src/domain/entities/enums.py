"""
Auth Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AuditAction(str, Enum):
    """Security-relevant actions recorded in the audit log"""

    signup = "signup"
    login = "login"
    login_failed = "login_failed"
    account_locked = "account_locked"
    token_refresh = "token_refresh"
    refresh_token_reuse = "refresh_token_reuse"
    logout = "logout"
    password_reset_requested = "password_reset_requested"
    password_reset_confirmed = "password_reset_confirmed"
    email_verified = "email_verified"
    verification_resent = "verification_resent"

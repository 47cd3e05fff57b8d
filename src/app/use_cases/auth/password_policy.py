"""
Password strength rules, checked before any state is changed.
"""

import re

from src.libs.result import Error, Result, Return

MIN_PASSWORD_LENGTH = 8
# bcrypt only accepts up to 72 bytes of input
MAX_PASSWORD_BYTES = 72
SPECIAL_CHARACTERS = "@$!%*?&"

_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]"), f"one special character ({SPECIAL_CHARACTERS})"),
)


def validate_password_strength(password: str) -> Result[None]:
    """
    Validate password complexity.

    Args:
        password: Password to validate

    Returns:
        Result with None if valid, or Error(WEAK_PASSWORD) listing what is missing
    """
    missing = []
    if len(password) < MIN_PASSWORD_LENGTH:
        missing.append(f"at least {MIN_PASSWORD_LENGTH} characters")
    missing.extend(label for pattern, label in _RULES if not pattern.search(password))
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        missing.append(f"at most {MAX_PASSWORD_BYTES} bytes")

    if missing:
        return Return.err(
            Error(
                "WEAK_PASSWORD",
                "Password must contain " + ", ".join(missing),
                details={"missing": missing},
            )
        )

    return Return.ok(None)

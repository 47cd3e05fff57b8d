from datetime import timedelta

from pydantic import BaseModel


class AuthSettings(BaseModel):
    """Tunables of the auth use cases that are not signing or lockout related"""

    frontend_url: str = "http://localhost:5173"
    reset_token_ttl: timedelta = timedelta(hours=1)
    verification_token_ttl: timedelta = timedelta(hours=24)
    reset_requests_per_hour: int = 3
    notify_timeout_seconds: float = 5.0

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        return cls(
            frontend_url=config.FRONTEND_URL.rstrip("/"),
            reset_token_ttl=timedelta(minutes=config.RESET_TOKEN_TTL_MINUTES),
            verification_token_ttl=timedelta(hours=config.VERIFICATION_TOKEN_TTL_HOURS),
            reset_requests_per_hour=config.RESET_REQUESTS_PER_HOUR,
            notify_timeout_seconds=config.NOTIFY_TIMEOUT_SECONDS,
        )

    def reset_link(self, raw_token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={raw_token}"

    def verification_link(self, raw_token: str) -> str:
        return f"{self.frontend_url}/verify-email?token={raw_token}"

import logging

from src.app.services.notification_service import INotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(INotificationService):
    """
    Notification channel that only logs.

    Email transport is provided by the deployment; until one is wired in,
    links are written to the log so local development can follow them.
    """

    async def send_password_reset(self, email: str, reset_link: str) -> None:
        logger.info(f"Password reset link for {email}: {reset_link}")

    async def send_email_verification(self, email: str, verification_link: str) -> None:
        logger.info(f"Email verification link for {email}: {verification_link}")

    async def send_password_changed(self, email: str) -> None:
        logger.info(f"Password changed notice for {email}")

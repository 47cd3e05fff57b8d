import asyncio
import logging
from abc import ABC, abstractmethod
from functools import partial
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class INotificationService(ABC):
    """Out-of-band delivery of links to the account owner (e.g. email)"""

    @abstractmethod
    async def send_password_reset(self, email: str, reset_link: str) -> None:
        """Deliver a password reset link"""
        pass

    @abstractmethod
    async def send_email_verification(self, email: str, verification_link: str) -> None:
        """Deliver an email verification link"""
        pass

    @abstractmethod
    async def send_password_changed(self, email: str) -> None:
        """Tell the owner that the account password was just changed"""
        pass


async def deliver(send: Callable[[], Awaitable[None]], timeout: float) -> bool:
    """
    Run a notification without letting it fail the caller.

    Delivery problems are logged and reported as False; the operation that
    triggered the notification has already been committed.
    """
    try:
        await asyncio.wait_for(send(), timeout)
        return True
    except Exception:
        logger.exception("Notification delivery failed")
        return False


class NotificationDispatcher:
    """
    Queues notifications so the request never waits on the transport.

    `schedule` has the signature of BackgroundTasks.add_task; the HTTP layer
    passes the request's background tasks, which run after the response has
    been sent. Nothing is sent until the scheduler runs the queued work.
    """

    def __init__(
        self,
        notifier: INotificationService,
        schedule: Callable[..., None],
        timeout: float = 5.0,
    ):
        self.notifier = notifier
        self.schedule = schedule
        self.timeout = timeout

    def _queue(self, send: Callable[[], Awaitable[None]]) -> None:
        self.schedule(deliver, send, self.timeout)

    def password_reset(self, email: str, reset_link: str) -> None:
        self._queue(partial(self.notifier.send_password_reset, email, reset_link))

    def email_verification(self, email: str, verification_link: str) -> None:
        self._queue(partial(self.notifier.send_email_verification, email, verification_link))

    def password_changed(self, email: str) -> None:
        self._queue(partial(self.notifier.send_password_changed, email))

from datetime import timedelta

import pytest
from fastapi import BackgroundTasks
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.memory_token_store import InMemoryTokenStore
from src.api.utils.jwt import TokenService, TokenSettings
from src.app.services.notification_service import NotificationDispatcher
from src.app.services.password_hasher import PasswordHasher
from src.app.use_cases.auth import AuthSettings
from src.domain.lockout import LockoutPolicy


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)
    uow.users.record_failed_login = AsyncMock()

    uow.password_reset_tokens = MagicMock()
    uow.password_reset_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.password_reset_tokens.get_by_lookup_id = AsyncMock(return_value=None)
    uow.password_reset_tokens.delete = AsyncMock()
    uow.password_reset_tokens.delete_by_user_id = AsyncMock(return_value=0)
    uow.password_reset_tokens.mark_used = AsyncMock(return_value=True)

    uow.email_verifications = MagicMock()
    uow.email_verifications.create = AsyncMock(side_effect=lambda v: v)
    uow.email_verifications.get_by_token_hash = AsyncMock(return_value=None)
    uow.email_verifications.update = AsyncMock(side_effect=lambda v: v)
    uow.email_verifications.delete_pending_by_user_id = AsyncMock(return_value=0)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock()

    return uow


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(TokenSettings(secret="unit-test-secret"))


@pytest.fixture
def token_store():
    return InMemoryTokenStore()


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.send_password_reset = AsyncMock()
    notifier.send_email_verification = AsyncMock()
    notifier.send_password_changed = AsyncMock()
    return notifier


@pytest.fixture
def background_tasks():
    """Queued notifications; await it to run them"""
    return BackgroundTasks()


@pytest.fixture
def notifications(notifier, background_tasks):
    return NotificationDispatcher(notifier, background_tasks.add_task, timeout=1)


@pytest.fixture
def lockout():
    return LockoutPolicy(max_attempts=5, lock_duration=timedelta(minutes=15))


@pytest.fixture
def auth_settings():
    return AuthSettings(frontend_url="http://frontend.test", notify_timeout_seconds=1)


@pytest.fixture
def audit_actions(mock_uow):
    """Actions of the audit events written so far, in order"""

    def actions() -> list:
        return [call.args[0].action for call in mock_uow.audit_events.create.await_args_list]

    return actions

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from src.app.services.reset_token_manager import ResetTokenManager
from src.app.use_cases.auth import ConfirmPasswordResetUseCase
from src.domain.base import utcnow
from src.domain.entities import User

NEW_PASSWORD = "BrandNew456&"


@pytest.fixture
def use_case(mock_uow, hasher, token_service, token_store, lockout, notifications, auth_settings):
    return ConfirmPasswordResetUseCase(
        mock_uow, hasher, token_service, token_store, lockout, notifications, auth_settings
    )


@pytest.fixture
def user(mock_uow):
    user = User(
        id=uuid4(),
        email="user@example.com",
        password_hash="old",
        display_name="User",
        failed_login_attempts=5,
        locked_until=utcnow() + timedelta(minutes=10),
    )
    mock_uow.users.get_by_id.return_value = user
    return user


@pytest_asyncio.fixture
async def issued(mock_uow, hasher, user):
    """A reset token created the way RequestPasswordReset creates it"""
    raw_token = await ResetTokenManager(mock_uow, hasher).create_reset(user.id, utcnow())
    record = mock_uow.password_reset_tokens.create.await_args.args[0]
    mock_uow.password_reset_tokens.get_by_lookup_id.return_value = record
    mock_uow.reset_mock()
    return raw_token, record


@pytest.mark.asyncio
async def test_successful_reset(
    use_case, mock_uow, hasher, token_store, notifier, background_tasks, user, issued, audit_actions
):
    raw_token, record = issued
    await token_store.register_family(user.id, "fam-1", 600)

    result = await use_case.execute(raw_token, NEW_PASSWORD)

    assert result.is_ok()
    assert "log in with your new password" in result.value.message
    assert hasher.verify(NEW_PASSWORD, user.password_hash)
    assert user.failed_login_attempts == 0
    assert user.locked_until is None
    mock_uow.password_reset_tokens.mark_used.assert_awaited_once()
    assert audit_actions() == ["password_reset_confirmed"]
    mock_uow.commit.assert_awaited_once()
    assert await token_store.is_family_revoked("fam-1")

    notifier.send_password_changed.assert_not_awaited()
    await background_tasks()
    notifier.send_password_changed.assert_awaited_once_with("user@example.com")


@pytest.mark.asyncio
async def test_weak_password_leaves_token_untouched(use_case, mock_uow, issued):
    raw_token, _ = issued

    result = await use_case.execute(raw_token, "weak")

    assert result.error.code == "WEAK_PASSWORD"
    mock_uow.password_reset_tokens.get_by_lookup_id.assert_not_awaited()
    mock_uow.password_reset_tokens.mark_used.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_token(use_case, mock_uow):
    mock_uow.password_reset_tokens.get_by_lookup_id.return_value = None

    result = await use_case.execute("abc.def", NEW_PASSWORD)

    assert result.error.code == "RESET_TOKEN_NOT_FOUND"
    mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_expired_token_deletion_is_committed(use_case, mock_uow, user, issued):
    raw_token, record = issued
    record.expires_at = utcnow() - timedelta(seconds=1)

    result = await use_case.execute(raw_token, NEW_PASSWORD)

    assert result.error.code == "RESET_TOKEN_EXPIRED"
    mock_uow.password_reset_tokens.delete.assert_awaited_once_with(record)
    mock_uow.commit.assert_awaited_once()
    assert user.password_hash == "old"


@pytest.mark.asyncio
async def test_used_token(use_case, mock_uow, user, issued, background_tasks):
    raw_token, record = issued
    record.used_at = utcnow()

    result = await use_case.execute(raw_token, NEW_PASSWORD)

    assert result.error.code == "RESET_TOKEN_ALREADY_USED"
    mock_uow.commit.assert_not_awaited()
    assert user.password_hash == "old"
    assert background_tasks.tasks == []

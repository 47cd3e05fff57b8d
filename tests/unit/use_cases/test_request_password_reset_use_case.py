import asyncio
import time
from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest

from src.app.use_cases.auth import RequestPasswordResetUseCase
from src.domain.entities import User


@pytest.fixture
def use_case(mock_uow, hasher, token_store, notifications, auth_settings):
    return RequestPasswordResetUseCase(mock_uow, hasher, token_store, notifications, auth_settings)


@pytest.fixture
def user(mock_uow):
    user = User(id=uuid4(), email="user@example.com", password_hash="x", display_name="User")
    mock_uow.users.get_by_email.return_value = user
    return user


@pytest.mark.asyncio
async def test_registered_email_gets_link(
    use_case, user, mock_uow, notifier, background_tasks, audit_actions
):
    result = await use_case.execute(" USER@example.com")

    assert result.is_ok()
    record = mock_uow.password_reset_tokens.create.await_args.args[0]
    assert record.user_id == user.id
    assert audit_actions() == ["password_reset_requested"]
    mock_uow.commit.assert_awaited_once()

    # Queued, not sent, until the response is out
    notifier.send_password_reset.assert_not_awaited()
    await background_tasks()

    email, link = notifier.send_password_reset.await_args.args
    assert email == "user@example.com"
    raw_token = link.split("token=", 1)[1]
    assert link == f"http://frontend.test/reset-password?token={raw_token}"
    assert raw_token.split(".")[0] == record.lookup_id
    assert raw_token.split(".")[1] != record.token_hash


@pytest.mark.asyncio
async def test_response_identical_for_unknown_email(
    use_case, mock_uow, notifier, hasher, background_tasks
):
    mock_uow.users.get_by_email.return_value = User(
        id=uuid4(), email="user@example.com", password_hash="x", display_name="User"
    )
    known = await use_case.execute("user@example.com")

    mock_uow.users.get_by_email.return_value = None
    with patch.object(hasher, "hash", wraps=hasher.hash) as hash_spy:
        unknown = await use_case.execute("nobody@example.com")

    assert known.value.model_dump_json() == unknown.value.model_dump_json()
    hash_spy.assert_called_once()

    await background_tasks()
    notifier.send_password_reset.assert_awaited_once()


@pytest.mark.asyncio
async def test_slow_notifier_does_not_delay_response(use_case, mock_uow, notifier, background_tasks):
    async def slow_send(email, link):
        await asyncio.sleep(0.8)

    notifier.send_password_reset.side_effect = slow_send

    mock_uow.users.get_by_email.return_value = User(
        id=uuid4(), email="user@example.com", password_hash="x", display_name="User"
    )
    started = time.perf_counter()
    await use_case.execute("user@example.com")
    known = time.perf_counter() - started

    mock_uow.users.get_by_email.return_value = None
    started = time.perf_counter()
    await use_case.execute("nobody@example.com")
    unknown = time.perf_counter() - started

    assert known < 0.4
    assert abs(known - unknown) < 0.2

    await background_tasks()
    notifier.send_password_reset.assert_awaited_once()


@pytest.mark.asyncio
async def test_rate_limit(use_case, user, mock_uow, notifier, background_tasks):
    responses = [await use_case.execute("user@example.com") for _ in range(4)]
    await background_tasks()

    assert len({r.value.model_dump_json() for r in responses}) == 1
    assert mock_uow.password_reset_tokens.create.await_count == 3
    assert notifier.send_password_reset.await_count == 3


@pytest.mark.asyncio
async def test_token_ttl_from_settings(mock_uow, hasher, token_store, notifications, auth_settings, user):
    auth_settings.reset_token_ttl = timedelta(minutes=10)
    use_case = RequestPasswordResetUseCase(
        mock_uow, hasher, token_store, notifications, auth_settings
    )

    await use_case.execute("user@example.com")

    record = mock_uow.password_reset_tokens.create.await_args.args[0]
    assert record.expires_at - record.created_at <= timedelta(minutes=10)
    assert record.expires_at - record.created_at > timedelta(minutes=9)


@pytest.mark.asyncio
async def test_notification_failure_is_not_reported(use_case, user, notifier, background_tasks):
    notifier.send_password_reset.side_effect = TimeoutError()

    result = await use_case.execute("user@example.com")
    await background_tasks()

    assert result.is_ok()
    notifier.send_password_reset.assert_awaited_once()

import hashlib
from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.use_cases.auth import VerifyEmailUseCase
from src.domain.base import utcnow
from src.domain.entities import EmailVerification, User


@pytest.fixture
def user(mock_uow):
    user = User(id=uuid4(), email="user@example.com", password_hash="x", display_name="User")
    mock_uow.users.get_by_id.return_value = user
    return user


def _verification(user, **overrides) -> EmailVerification:
    data = {
        "user_id": user.id,
        "email": user.email,
        "token_hash": hashlib.sha256(b"raw-token").hexdigest(),
        "expires_at": utcnow() + timedelta(hours=24),
    }
    data.update(overrides)
    return EmailVerification(**data)


@pytest.mark.asyncio
async def test_verify_email(mock_uow, user, audit_actions):
    verification = _verification(user)
    mock_uow.email_verifications.get_by_token_hash.return_value = verification

    result = await VerifyEmailUseCase(mock_uow).execute("raw-token")

    assert result.is_ok()
    assert result.value.status == "verified"
    mock_uow.email_verifications.get_by_token_hash.assert_awaited_once_with(
        hashlib.sha256(b"raw-token").hexdigest()
    )
    assert user.email_verified is True
    assert verification.verified_at is not None
    assert audit_actions() == ["email_verified"]
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_token(mock_uow):
    result = await VerifyEmailUseCase(mock_uow).execute("unknown")

    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_expired_token(mock_uow, user):
    mock_uow.email_verifications.get_by_token_hash.return_value = _verification(
        user, expires_at=utcnow() - timedelta(minutes=1)
    )

    result = await VerifyEmailUseCase(mock_uow).execute("raw-token")

    assert result.error.code == "TOKEN_EXPIRED"
    assert user.email_verified is False


@pytest.mark.asyncio
async def test_already_verified_is_not_an_error(mock_uow, user):
    mock_uow.email_verifications.get_by_token_hash.return_value = _verification(
        user, verified_at=utcnow()
    )

    result = await VerifyEmailUseCase(mock_uow).execute("raw-token")

    assert result.is_ok()
    mock_uow.commit.assert_not_awaited()

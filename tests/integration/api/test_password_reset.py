from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlmodel import select

from src.domain.base import utcnow
from src.domain.entities import PasswordResetToken

OLD_PASSWORD = "SecurePass123!"
NEW_PASSWORD = "BrandNew456&"


async def _forgot(client: AsyncClient, email: str):
    return await client.post("/auth/forgot-password", json={"email": email})


async def _reset(client: AsyncClient, token: str, new_password: str = NEW_PASSWORD):
    return await client.post("/auth/reset-password", json={"token": token, "new_password": new_password})


async def _login(client: AsyncClient, password: str):
    return await client.post("/auth/login", json={"email": "user@example.com", "password": password})


@pytest.mark.asyncio
async def test_no_email_enumeration(client: AsyncClient, signup, notifier):
    """Forgot Password Enumeration Resistance

    Given one registered and one unknown email
    When I request a reset for both
    Then both responses are byte-identical
    And only the registered email receives a link
    """
    await signup()

    known = await _forgot(client, "user@example.com")
    unknown = await _forgot(client, "nobody@example.com")

    assert known.status_code == unknown.status_code == 200
    assert known.content == unknown.content
    assert [email for email, _ in notifier.reset_links] == ["user@example.com"]


@pytest.mark.asyncio
async def test_reset_flow(client: AsyncClient, signup, notifier):
    """Scenario C: Password Reset

    Given I requested a reset link
    When I reset my password with its token
    Then I can log in with the new password but not the old one
    And the same token cannot be used twice
    And refresh tokens issued before the reset stop working
    And I am told that my password changed
    """
    created = await signup()
    await _forgot(client, "user@example.com")
    token = notifier.token_of(notifier.reset_links[-1][1])

    response = await _reset(client, token)
    assert response.status_code == 200
    assert "log in with your new password" in response.json()["message"]
    assert notifier.password_changed == ["user@example.com"]

    assert (await _login(client, NEW_PASSWORD)).status_code == 200
    assert (await _login(client, OLD_PASSWORD)).status_code == 401

    again = await _reset(client, token, "AnotherOne789!")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "RESET_TOKEN_ALREADY_USED"

    refresh = await client.post("/auth/refresh", json={"refresh_token": created["refresh_token"]})
    assert refresh.status_code == 401


@pytest.mark.asyncio
async def test_reset_unlocks_account(client: AsyncClient, signup, notifier):
    await signup()
    for _ in range(5):
        await _login(client, "WrongPass123!")
    assert (await _login(client, OLD_PASSWORD)).status_code == 423

    await _forgot(client, "user@example.com")
    await _reset(client, notifier.token_of(notifier.reset_links[-1][1]))

    assert (await _login(client, NEW_PASSWORD)).status_code == 200


@pytest.mark.asyncio
async def test_new_request_invalidates_previous_token(client: AsyncClient, signup, notifier):
    await signup()
    await _forgot(client, "user@example.com")
    await _forgot(client, "user@example.com")
    first, second = (notifier.token_of(link) for _, link in notifier.reset_links)

    assert (await _reset(client, first)).json()["error"]["code"] == "RESET_TOKEN_NOT_FOUND"
    assert (await _reset(client, second)).status_code == 200


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, signup, notifier, db_session):
    await signup()
    await _forgot(client, "user@example.com")
    token = notifier.token_of(notifier.reset_links[-1][1])

    record = (await db_session.exec(select(PasswordResetToken))).one()
    record.expires_at = utcnow() - timedelta(minutes=1)
    db_session.add(record)
    await db_session.commit()

    response = await _reset(client, token)
    assert response.status_code == 410
    assert response.json()["error"]["code"] == "RESET_TOKEN_EXPIRED"

    # Expired record is gone
    again = await _reset(client, token)
    assert again.json()["error"]["code"] == "RESET_TOKEN_NOT_FOUND"


@pytest.mark.asyncio
async def test_unknown_token(client: AsyncClient):
    response = await _reset(client, "0123456789abcdef." + "0" * 64)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "RESET_TOKEN_NOT_FOUND"


@pytest.mark.asyncio
async def test_weak_new_password(client: AsyncClient, signup, notifier):
    await signup()
    await _forgot(client, "user@example.com")
    token = notifier.token_of(notifier.reset_links[-1][1])

    response = await _reset(client, token, "weak")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "WEAK_PASSWORD"

    # Token was not consumed
    assert (await _reset(client, token)).status_code == 200


@pytest.mark.asyncio
async def test_rate_limited_requests_look_the_same(client: AsyncClient, signup, notifier):
    await signup()

    responses = [await _forgot(client, "user@example.com") for _ in range(4)]

    assert len({r.content for r in responses}) == 1
    assert len(notifier.reset_links) == 3

import asyncio
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authguard.app.services.password_hasher import hash_password, verify_password
from authguard.app.services.token_service import generate_token, hash_token
from authguard.app.use_cases.auth import ConfirmPasswordResetUseCase
from authguard.domain.base import after_ms, utc_now
from authguard.domain.entities import PasswordResetToken, User


async def request_reset_token(client: AsyncClient, email_service) -> str:
    response = await client.post("/auth/forgot-password", json={"email": "dj@example.com"})
    assert response.status_code == 200
    return email_service.tokens("password_reset")[-1]


@pytest.mark.asyncio
async def test_full_reset_flow(client: AsyncClient, registered_user, email_service, auth_headers):
    """Reset sets the new password, revokes the old session and clears the cookie"""
    token = await request_reset_token(client, email_service)

    response = await client.post(
        "/auth/reset-password", json={"token": token, "newPassword": "BrandNewPass1"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert "Max-Age=0" in response.headers["set-cookie"]
    client.cookies.clear()

    session = await client.get("/auth/session", headers=auth_headers(registered_user["token"]))
    assert session.status_code == 401

    old_login = await client.post(
        "/auth/login", json={"email": "dj@example.com", "password": registered_user["password"]}
    )
    assert old_login.status_code == 401

    new_login = await client.post(
        "/auth/login", json={"email": "dj@example.com", "password": "BrandNewPass1"}
    )
    assert new_login.status_code == 200


@pytest.mark.asyncio
async def test_token_cannot_be_used_twice(client: AsyncClient, registered_user, email_service):
    token = await request_reset_token(client, email_service)

    first = await client.post("/auth/reset-password", json={"token": token, "newPassword": "BrandNewPass1"})
    second = await client.post("/auth/reset-password", json={"token": token, "newPassword": "OtherPass222"})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["error"] == {
        "code": "INVALID_TOKEN",
        "message": "Reset link is invalid or expired",
    }


@pytest.mark.asyncio
async def test_new_reset_consumes_older_outstanding_tokens(client: AsyncClient, registered_user, email_service):
    older = await request_reset_token(client, email_service)
    newer = await request_reset_token(client, email_service)

    assert (await client.post("/auth/reset-password", json={"token": newer, "newPassword": "BrandNewPass1"})).status_code == 200

    response = await client.post("/auth/reset-password", json={"token": older, "newPassword": "OtherPass222"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_token_gets_the_same_error(client: AsyncClient):
    response = await client.post(
        "/auth/reset-password", json={"token": generate_token(), "newPassword": "BrandNewPass1"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Reset link is invalid or expired"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, message",
    [
        ({"newPassword": "BrandNewPass1"}, "Token and new password are required"),
        ({"token": "abc"}, "Token and new password are required"),
        ({"token": "abc", "newPassword": "short"}, "Password must be at least 8 characters"),
    ],
)
async def test_reset_password_validation(client: AsyncClient, payload, message):
    response = await client.post("/auth/reset-password", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == message


@pytest.mark.asyncio
async def test_reset_password_is_rate_limited(client: AsyncClient):
    payload = {"token": "guess", "newPassword": "BrandNewPass1"}
    headers = {"X-Real-IP": "203.0.113.80"}
    statuses = [
        (await client.post("/auth/reset-password", json=payload, headers=headers)).status_code
        for _ in range(7)
    ]

    assert statuses == [400] * 6 + [429]


async def seed_token(db_session: AsyncSession, created_at) -> tuple:
    user = User(
        email="boundary@example.com",
        username="boundary",
        password_hash=hash_password("OldPassword1"),
    )
    db_session.add(user)
    plain = generate_token()
    token = PasswordResetToken(
        user_id=user.id,
        token_hash=hash_token(plain),
        created_at=created_at,
        expires_at=after_ms(created_at, 3_600_000),
    )
    db_session.add(token)
    await db_session.commit()
    return user.id, plain, token.expires_at


@pytest.mark.asyncio
async def test_token_redeemable_one_millisecond_before_expiry(db_session):
    _, plain, expires_at = await seed_token(db_session, utc_now())

    use_case = ConfirmPasswordResetUseCase(
        SqlAlchemyUnitOfWork(db_session), clock=lambda: expires_at - timedelta(milliseconds=1)
    )
    result = await use_case.execute(plain, "BrandNewPass1")

    assert result.is_ok()


@pytest.mark.asyncio
async def test_token_rejected_one_millisecond_after_expiry(db_session):
    user_id, plain, expires_at = await seed_token(db_session, utc_now())

    use_case = ConfirmPasswordResetUseCase(
        SqlAlchemyUnitOfWork(db_session), clock=lambda: expires_at + timedelta(milliseconds=1)
    )
    result = await use_case.execute(plain, "BrandNewPass1")

    assert result.is_err()
    assert result.error.code == "INVALID_TOKEN"

    stored = (
        await db_session.exec(select(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
    ).one()
    assert stored.used_at is None



@pytest.mark.asyncio
async def test_concurrent_redemptions_on_separate_sessions_have_one_winner(engine, db_session):
    user_id, plain, _ = await seed_token(db_session, utc_now())
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def redeem(new_password: str):
        async with Session() as session:
            use_case = ConfirmPasswordResetUseCase(SqlAlchemyUnitOfWork(session))
            return await use_case.execute(plain, new_password)

    passwords = [f"BrandNewPass{i}" for i in range(6)]
    results = await asyncio.gather(*(redeem(password) for password in passwords))

    winners = [password for password, result in zip(passwords, results) if result.is_ok()]
    assert len(winners) == 1
    assert [result.error.code for result in results if result.is_err()] == ["INVALID_TOKEN"] * 5

    db_session.expire_all()
    user = await db_session.get(User, user_id)
    assert verify_password(winners[0], user.password_hash)

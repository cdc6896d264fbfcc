"""
Unit tests for UpdateAccountUseCase
"""
from datetime import datetime
from uuid import uuid4

import bcrypt
import pytest

from authguard.app.use_cases.account import UpdateAccountCommand, UpdateAccountUseCase
from authguard.domain.entities import User

NOW = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def user(mock_uow) -> User:
    user = User(
        id=uuid4(),
        email="dj@example.com",
        username="dj_nexus",
        password_hash=bcrypt.hashpw(b"SecurePass123", bcrypt.gensalt(4)).decode(),
        email_verified=True,
    )
    mock_uow.users.get_by_id.return_value = user
    return user


async def run(mock_uow, user, **fields):
    use_case = UpdateAccountUseCase(mock_uow, clock=lambda: NOW)
    return await use_case.execute(user.id, UpdateAccountCommand(**fields))


@pytest.mark.asyncio
async def test_update_email_resets_verification_and_reissues(mock_uow, user):
    result = await run(mock_uow, user, action="updateEmail", email="New@Example.com")

    assert result.is_ok()
    body = result.value.response
    assert body.user.email == "new@example.com"
    assert body.user.email_verified is False
    mock_uow.users.is_email_available.assert_awaited_once_with("new@example.com", user.id)
    mock_uow.email_verification_tokens.expire_outstanding_for_user.assert_awaited_once_with(
        user.id, NOW
    )
    mock_uow.sessions.revoke_all_by_user_id.assert_awaited_once_with(user.id)
    assert mock_uow.sessions.create.call_args.args[0].claims["email"] == "new@example.com"
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_email_to_same_address_keeps_verification(mock_uow, user):
    result = await run(mock_uow, user, action="updateEmail", email="DJ@example.com")

    assert result.is_ok()
    assert result.value.response.user.email_verified is True
    mock_uow.email_verification_tokens.expire_outstanding_for_user.assert_not_called()


@pytest.mark.asyncio
async def test_update_email_taken(mock_uow, user):
    mock_uow.users.is_email_available.return_value = False

    result = await run(mock_uow, user, action="updateEmail", email="taken@example.com")

    assert result.error.message == "This email is already in use"
    mock_uow.sessions.revoke_all_by_user_id.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_update_username(mock_uow, user):
    result = await run(mock_uow, user, action="updateUsername", username="Night_Owl")

    assert result.is_ok()
    assert result.value.response.user.username == "night_owl"
    assert result.value.session.token


@pytest.mark.asyncio
async def test_update_username_taken(mock_uow, user):
    mock_uow.users.is_username_available.return_value = False

    result = await run(mock_uow, user, action="updateUsername", username="night_owl")

    assert result.error.message == "This username is already taken"


@pytest.mark.asyncio
async def test_update_password_requires_current_password(mock_uow, user):
    result = await run(
        mock_uow,
        user,
        action="updatePassword",
        current_password="WrongPass999",
        new_password="BrandNewPass1",
    )

    assert result.error.message == "Current password is incorrect"
    assert bcrypt.checkpw(b"SecurePass123", user.password_hash.encode())


@pytest.mark.asyncio
async def test_update_password(mock_uow, user):
    result = await run(
        mock_uow,
        user,
        action="updatePassword",
        current_password="SecurePass123",
        new_password="BrandNewPass1",
    )

    assert result.is_ok()
    assert result.value.response.message == "Password updated successfully"
    assert result.value.response.user is None
    assert bcrypt.checkpw(b"BrandNewPass1", user.password_hash.encode())
    mock_uow.sessions.revoke_all_by_user_id.assert_awaited_once_with(user.id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, message",
    [
        ({}, "Invalid action"),
        ({"action": "deleteAccount"}, "Invalid action"),
        ({"action": "updateEmail"}, "Email is required"),
        ({"action": "updateUsername", "username": ""}, "Username is required"),
        ({"action": "updatePassword", "current_password": "SecurePass123"}, "Current and new password are required"),
    ],
)
async def test_missing_fields_never_touch_storage(mock_uow, user, fields, message):
    result = await run(mock_uow, user, **fields)

    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    assert result.error.message == message
    mock_uow.users.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_user_gone(mock_uow, user):
    mock_uow.users.get_by_id.return_value = None

    result = await run(mock_uow, user, action="updateUsername", username="night_owl")

    assert result.error.message == "User not found"

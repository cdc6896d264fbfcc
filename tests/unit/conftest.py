from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with every repository the use cases touch"""
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
    uow.users.is_email_available = AsyncMock(return_value=True)
    uow.users.is_username_available = AsyncMock(return_value=True)

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock(side_effect=lambda session: session)
    uow.sessions.get_by_id = AsyncMock(return_value=None)
    uow.sessions.revoke_all_by_user_id = AsyncMock(return_value=0)
    uow.sessions.revoke_by_id = AsyncMock(return_value=True)

    uow.password_reset_tokens = MagicMock()
    uow.password_reset_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.password_reset_tokens.mark_used = AsyncMock(return_value=None)
    uow.password_reset_tokens.get_by_token_hash = AsyncMock(return_value=None)
    uow.password_reset_tokens.expire_outstanding_for_user = AsyncMock(return_value=0)

    uow.email_verification_tokens = MagicMock()
    uow.email_verification_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.email_verification_tokens.mark_used = AsyncMock(return_value=None)
    uow.email_verification_tokens.expire_outstanding_for_user = AsyncMock(return_value=0)

    uow.login_attempts = MagicMock()
    uow.login_attempts.create = AsyncMock(side_effect=lambda attempt: attempt)
    uow.login_attempts.get_failures_by_email = AsyncMock(return_value=[])
    uow.login_attempts.get_failures_by_ip = AsyncMock(return_value=[])

    return uow


@pytest.fixture
def dispatcher():
    """Records dispatched emails instead of sending them"""
    return MagicMock()

"""
Register Use Case

Creates an account and signs it in.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from authguard.app.services.password_hasher import hash_password
from authguard.app.services.session_manager import SessionManager
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import utc_now
from authguard.domain.entities import User
from authguard.domain.validation import (
    email_error,
    normalize_email,
    normalize_username,
    password_error,
    username_error,
)
from authguard.result import Error, Result, Return
from config import ApplicationConfig
from .dtos import AuthenticatedUser, RegisterCommand, UserResponse

logger = logging.getLogger(__name__)


def _invalid(message: str) -> Result:
    return Return.err(Error("VALIDATION_ERROR", message))


class RegisterUseCase:
    """
    Use case for user registration.

    Business Rules:
    - Email, username and password are required; terms must be accepted
    - Email and username are normalized to lowercase and must be unused
    - Registration can be switched off with AUTH_REGISTRATION_ENABLED
    - A session is issued for the new account in the same transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        registration_enabled: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.registration_enabled = (
            ApplicationConfig.AUTH_REGISTRATION_ENABLED
            if registration_enabled is None
            else registration_enabled
        )
        self.clock = clock

    async def execute(self, command: RegisterCommand) -> Result[AuthenticatedUser]:
        if not command.email or not command.username or not command.password:
            return _invalid("Email, username, and password are required")
        if not command.terms_accepted:
            return _invalid("Terms & Conditions must be accepted")
        if not self.registration_enabled:
            return _invalid("Registration is currently disabled")

        email = normalize_email(command.email)
        username = normalize_username(command.username)

        problem = (
            email_error(email) or username_error(username) or password_error(command.password)
        )
        if problem:
            return _invalid(problem)

        async with self.uow:
            if not await self.uow.users.is_email_available(email):
                return _invalid("An account with this email already exists")
            if not await self.uow.users.is_username_available(username):
                return _invalid("This username is already taken")

            now = self.clock()
            user = User(
                email=email,
                username=username,
                password_hash=hash_password(command.password),
                terms_accepted_at=now,
                created_at=now,
                updated_at=now,
            )
            try:
                user = await self.uow.users.create(user)
            except IntegrityError:
                # Lost a race with a concurrent registration for the same email or username
                return _invalid("Registration failed")

            issued = await SessionManager(self.uow, clock=self.clock).issue(user)
            response = UserResponse.from_user(user)
            await self.uow.commit()

        logger.info(f"User registered: {response.id}")
        return Return.ok(AuthenticatedUser(user=response, session=issued))

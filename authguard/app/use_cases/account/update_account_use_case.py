"""
Update Account Use Case

Email, username and password changes for the signed-in user. Every
successful change replaces all of the user's sessions with a new one.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from authguard.app.services.password_hasher import hash_password, verify_password
from authguard.app.services.session_manager import SessionManager
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.app.use_cases.auth.dtos import UserResponse
from authguard.domain.base import utc_now
from authguard.domain.entities import AccountAction, User
from authguard.domain.validation import (
    email_error,
    normalize_email,
    normalize_username,
    password_error,
    username_error,
)
from authguard.result import Error, Result, Return
from .dtos import AccountUpdateResponse, AccountUpdateResult, UpdateAccountCommand

logger = logging.getLogger(__name__)


def _invalid(message: str) -> Result:
    return Return.err(Error("VALIDATION_ERROR", message))


class UpdateAccountUseCase:
    """
    Use case for credential changes.

    Business Rules:
    - updateEmail: valid format, not reserved, not owned by another user;
      the new address starts unverified
    - updateUsername: valid format, not reserved, not owned by another user
    - updatePassword: current password is verified before anything changes
    - On success every session of the user is revoked and a new one issued
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(
        self, user_id: UUID, command: UpdateAccountCommand
    ) -> Result[AccountUpdateResult]:
        """
        Execute update account use case.

        Args:
            user_id: ID of the signed-in user
            command: Requested action and its fields

        Returns:
            Result with the response body and the replacement session, or Error

        Errors:
            - VALIDATION_ERROR: Missing fields, unknown action, bad format,
              value taken, wrong current password, or user gone
        """
        try:
            action = AccountAction(command.action) if command.action else None
        except ValueError:
            action = None
        if action is None:
            return _invalid("Invalid action")

        # Presence checks come before any storage access
        if action == AccountAction.update_email and not command.email:
            return _invalid("Email is required")
        if action == AccountAction.update_username and not command.username:
            return _invalid("Username is required")
        if action == AccountAction.update_password and (
            not command.current_password or not command.new_password
        ):
            return _invalid("Current and new password are required")

        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return _invalid("User not found")

            now = self.clock()
            if action == AccountAction.update_email:
                outcome = await self._update_email(user, command.email, now)
            elif action == AccountAction.update_username:
                outcome = await self._update_username(user, command.username)
            else:
                outcome = self._update_password(user, command.current_password, command.new_password)

            if outcome is not None:
                return outcome

            user.updated_at = now
            user = await self.uow.users.update(user)

            issued = await SessionManager(self.uow, clock=self.clock).reissue(user)
            if action == AccountAction.update_password:
                response = AccountUpdateResponse(message="Password updated successfully")
            else:
                response = AccountUpdateResponse(user=UserResponse.from_user(user))
            await self.uow.commit()

        logger.info(f"Account updated ({action.value}) for user {user_id}; sessions reissued")
        return Return.ok(AccountUpdateResult(response=response, session=issued))

    async def _update_email(self, user: User, email: str, now: datetime) -> Optional[Result]:
        normalized = normalize_email(email)
        problem = email_error(normalized)
        if problem:
            return _invalid(problem)
        if not await self.uow.users.is_email_available(normalized, user.id):
            return _invalid("This email is already in use")

        if normalized != user.email:
            user.email = normalized
            user.email_verified = False
            await self.uow.email_verification_tokens.expire_outstanding_for_user(user.id, now)
        return None

    async def _update_username(self, user: User, username: str) -> Optional[Result]:
        normalized = normalize_username(username)
        problem = username_error(normalized)
        if problem:
            return _invalid(problem)
        if not await self.uow.users.is_username_available(normalized, user.id):
            return _invalid("This username is already taken")

        user.username = normalized
        return None

    def _update_password(
        self, user: User, current_password: str, new_password: str
    ) -> Optional[Result]:
        problem = password_error(new_password)
        if problem:
            return _invalid(problem)
        if not verify_password(current_password, user.password_hash):
            return _invalid("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        return None

"""
Confirm Password Reset Use Case

Redeems a reset token exactly once and sets the new password.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from authguard.app.services.password_hasher import hash_password
from authguard.app.services.session_manager import SessionManager
from authguard.app.services.token_service import hash_token
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import utc_now
from authguard.domain.validation import password_error
from authguard.result import Error, Result, Return
from .dtos import SuccessResponse

logger = logging.getLogger(__name__)

INVALID_TOKEN = Error("INVALID_TOKEN", "Reset link is invalid or expired")


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - The token is consumed by one conditional update (unused and unexpired);
      of concurrent redemptions exactly one wins
    - Unknown, expired and already-used tokens get the same error
    - On success: new bcrypt hash, every other outstanding reset token of the
      user is consumed, every session is revoked
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(
        self, token: Optional[str], new_password: Optional[str]
    ) -> Result[SuccessResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Password reset token (plain text from email)
            new_password: New password to set

        Returns:
            Result with success, or Error

        Errors:
            - VALIDATION_ERROR: Missing token or password, or password too weak
            - INVALID_TOKEN: Token unknown, expired or already used
        """
        token = (token or "").strip()
        if not token or not new_password:
            return Return.err(Error("VALIDATION_ERROR", "Token and new password are required"))

        problem = password_error(new_password)
        if problem:
            return Return.err(Error("VALIDATION_ERROR", problem))

        async with self.uow:
            now = self.clock()
            token_hash = hash_token(token)
            consumed = await self.uow.password_reset_tokens.mark_used(token_hash, now)
            if consumed is None:
                await self._log_rejection(token_hash, now)
                return Return.err(INVALID_TOKEN)

            user_id = consumed.user_id
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(INVALID_TOKEN)

            user.password_hash = hash_password(new_password)
            user.updated_at = now
            await self.uow.users.update(user)

            await self.uow.password_reset_tokens.expire_outstanding_for_user(user_id, now)
            revoked = await SessionManager(self.uow, clock=self.clock).revoke_all(user_id)

            await self.uow.commit()

        logger.info(f"Password reset completed for user {user_id}; {revoked} sessions revoked")
        return Return.ok(SuccessResponse())

    async def _log_rejection(self, token_hash: str, now: datetime) -> None:
        stored = await self.uow.password_reset_tokens.get_by_token_hash(token_hash)
        state = stored.state(now).value if stored is not None else "unknown"
        logger.info(f"Password reset rejected: token {state}")

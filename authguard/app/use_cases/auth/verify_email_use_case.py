"""
Verify Email Use Case

Consumes an email verification token and marks the address verified.
"""

import logging
from datetime import datetime
from typing import Callable

from authguard.app.services.session_manager import SessionManager
from authguard.app.services.token_service import hash_token
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import utc_now
from authguard.result import Error, Result, Return

logger = logging.getLogger(__name__)

INVALID_TOKEN = Error("INVALID_TOKEN", "Verification link is invalid or expired")


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - The token is consumed by one conditional update, like reset tokens
    - A token sent to an address the user no longer has does not verify
    - Sessions are revoked because their email_verified claim is now stale
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, token: str) -> Result[None]:
        async with self.uow:
            now = self.clock()
            consumed = await self.uow.email_verification_tokens.mark_used(hash_token(token), now)
            if consumed is None:
                return Return.err(INVALID_TOKEN)

            user_id = consumed.user_id
            user = await self.uow.users.get_by_id(user_id)
            if user is None or user.email != consumed.email:
                return Return.err(INVALID_TOKEN)

            user.email_verified = True
            user.updated_at = now
            await self.uow.users.update(user)

            await self.uow.email_verification_tokens.expire_outstanding_for_user(user_id, now)
            await SessionManager(self.uow, clock=self.clock).revoke_all(user_id)
            await self.uow.commit()

        logger.info(f"Email verified for user {user_id}")
        return Return.ok()

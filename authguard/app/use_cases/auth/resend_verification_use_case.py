"""
Resend Verification Use Case

Issues a fresh email verification token for the signed-in user.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from authguard.app.services.email_service import EmailDispatcher
from authguard.app.services.token_service import generate_token, hash_token
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import after_ms, utc_now
from authguard.domain.entities import EmailVerificationToken
from authguard.result import Error, Result, Return
from config import ApplicationConfig
from .dtos import GenericMessageResponse

logger = logging.getLogger(__name__)


class ResendVerificationUseCase:
    """
    Use case for resending the verification email.

    Business Rules:
    - Already verified accounts get a success message and no email
    - Earlier unused tokens are consumed so only the newest link works
    - Token expires VERIFY_TOKEN_TTL_MS (24 hours) after issuance and is
      bound to the address it was sent to
    """

    def __init__(
        self,
        uow: UnitOfWork,
        email_dispatcher: EmailDispatcher,
        clock: Callable[[], datetime] = utc_now,
        token_ttl_ms: Optional[int] = None,
    ):
        self.uow = uow
        self.email_dispatcher = email_dispatcher
        self.clock = clock
        self.token_ttl_ms = token_ttl_ms or ApplicationConfig.VERIFY_TOKEN_TTL_MS

    async def execute(self, user_id: UUID) -> Result[GenericMessageResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if user.email_verified:
                return Return.ok(GenericMessageResponse(message="Email already verified"))

            now = self.clock()
            token = generate_token()
            await self.uow.email_verification_tokens.expire_outstanding_for_user(user.id, now)
            await self.uow.email_verification_tokens.create(
                EmailVerificationToken(
                    user_id=user.id,
                    email=user.email,
                    token_hash=hash_token(token),
                    created_at=now,
                    expires_at=after_ms(now, self.token_ttl_ms),
                )
            )
            recipient = user.email
            await self.uow.commit()

        self.email_dispatcher.dispatch_verification(recipient, token)
        logger.info(f"Verification email issued for user {user_id}")
        return Return.ok(GenericMessageResponse(message="Verification email sent"))

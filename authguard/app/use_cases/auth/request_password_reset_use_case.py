"""
Request Password Reset Use Case

Issues a single-use reset token and emails it, without ever revealing
whether the address belongs to an account.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from authguard.app.services.email_service import EmailDispatcher
from authguard.app.services.token_service import generate_token, hash_token
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import after_ms, utc_now
from authguard.domain.entities import PasswordResetToken
from authguard.domain.validation import email_error, mask_email, normalize_email
from authguard.result import Error, Result, Return
from config import ApplicationConfig
from .dtos import FORGOT_PASSWORD_MESSAGE, GenericMessageResponse

logger = logging.getLogger(__name__)


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Token has 256 bits of entropy; only its SHA-256 is stored
    - Token expires RESET_TOKEN_TTL_MS (1 hour) after issuance
    - Identical response for known and unknown emails
    - Storage failures are logged and answered with the same response
    - The email goes out after the response, through the dispatcher
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
        self.token_ttl_ms = token_ttl_ms or ApplicationConfig.RESET_TOKEN_TTL_MS

    async def execute(
        self, email: Optional[str], request_ip: Optional[str] = None
    ) -> Result[GenericMessageResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Address typed by the caller
            request_ip: Trusted client address, None when unknown

        Returns:
            Result with the generic message, or a VALIDATION_ERROR for a
            missing or malformed email
        """
        if not email or not email.strip():
            return Return.err(Error("VALIDATION_ERROR", "Email is required"))

        normalized = normalize_email(email)
        if email_error(normalized):
            return Return.err(Error("VALIDATION_ERROR", "Invalid email format"))

        recipient = None
        token = None
        try:
            async with self.uow:
                user = await self.uow.users.get_by_email(normalized)
                if user is not None:
                    now = self.clock()
                    token = generate_token()
                    await self.uow.password_reset_tokens.create(
                        PasswordResetToken(
                            user_id=user.id,
                            token_hash=hash_token(token),
                            request_ip=request_ip,
                            created_at=now,
                            expires_at=after_ms(now, self.token_ttl_ms),
                        )
                    )
                    recipient = user.email
                    await self.uow.commit()
        except SQLAlchemyError:
            logger.exception(f"Password reset issuance failed for {mask_email(normalized)}")
            recipient = None

        if recipient is not None:
            self.email_dispatcher.dispatch_password_reset(recipient, token)
            logger.info(f"Password reset issued for {mask_email(recipient)}")

        return Return.ok(GenericMessageResponse(message=FORGOT_PASSWORD_MESSAGE))

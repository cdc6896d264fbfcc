"""
Login Use Case

Password sign-in with failed-attempt lockout per email and per address.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from authguard.app.services.password_hasher import burn_password_check, verify_password
from authguard.app.services.session_manager import SessionManager
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import utc_now
from authguard.domain.entities import LoginAttempt
from authguard.domain.validation import mask_email, normalize_email
from authguard.result import Error, Result, Return
from config import ApplicationConfig
from .dtos import AuthenticatedUser, UserResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - max_failed_attempts failures for an email, or from an address, within
      the window lock further attempts until the oldest failure ages out
    - Every attempt that reaches the password check is recorded
    - Unknown emails still cost one bcrypt check
    - Wrong email and wrong password get the same error
    """

    def __init__(
        self,
        uow: UnitOfWork,
        max_failed_attempts: Optional[int] = None,
        window_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.max_failed_attempts = max_failed_attempts or ApplicationConfig.LOGIN_MAX_FAILED_ATTEMPTS
        self.window = timedelta(
            minutes=window_minutes or ApplicationConfig.LOGIN_ATTEMPT_WINDOW_MINUTES
        )
        self.clock = clock

    def _retry_after_seconds(self, failures: List[LoginAttempt], now: datetime) -> int:
        oldest = failures[0].created_at
        remaining = (oldest + self.window - now).total_seconds()
        return max(1, math.ceil(remaining))

    async def execute(
        self, email: Optional[str], password: Optional[str], ip_address: Optional[str] = None
    ) -> Result[AuthenticatedUser]:
        """
        Execute login use case.

        Args:
            email: Address typed by the caller
            password: Password typed by the caller
            ip_address: Trusted client address, None when unknown

        Returns:
            Result with the user and a new session, or Error

        Errors:
            - VALIDATION_ERROR: Missing email or password
            - TOO_MANY_ATTEMPTS: Locked out; details carry retry_after seconds
            - INVALID_CREDENTIALS: Unknown email or wrong password
        """
        if not email or not password:
            return Return.err(Error("VALIDATION_ERROR", "Email and password are required"))

        normalized = normalize_email(email)

        async with self.uow:
            now = self.clock()
            since = now - self.window

            email_failures = await self.uow.login_attempts.get_failures_by_email(normalized, since)
            ip_failures = []
            if ip_address:
                ip_failures = await self.uow.login_attempts.get_failures_by_ip(ip_address, since)

            for failures in (email_failures, ip_failures):
                if len(failures) >= self.max_failed_attempts:
                    retry_after = self._retry_after_seconds(failures, now)
                    logger.warning(f"Login locked for {mask_email(normalized)}")
                    return Return.err(
                        Error(
                            "TOO_MANY_ATTEMPTS",
                            "Too many login attempts. Please try again later.",
                            {"retry_after": retry_after},
                        )
                    )

            user = await self.uow.users.get_by_email(normalized)
            if user is None:
                burn_password_check(password)
                authenticated = False
            else:
                authenticated = verify_password(password, user.password_hash)

            await self.uow.login_attempts.create(
                LoginAttempt(
                    email=normalized,
                    ip_address=ip_address,
                    success=authenticated,
                    created_at=now,
                )
            )

            if not authenticated:
                await self.uow.commit()
                logger.info(f"Failed login for {mask_email(normalized)}")
                return Return.err(INVALID_CREDENTIALS)

            issued = await SessionManager(self.uow, clock=self.clock).issue(user)
            response = UserResponse.from_user(user)
            await self.uow.commit()

        return Return.ok(AuthenticatedUser(user=response, session=issued))

from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.adapter.repositories.email_verification_token_repository import (
    EmailVerificationTokenRepository,
)
from authguard.adapter.repositories.login_attempt_repository import LoginAttemptRepository
from authguard.adapter.repositories.password_reset_token_repository import PasswordResetTokenRepository
from authguard.adapter.repositories.session_repository import SessionRepository
from authguard.adapter.repositories.user_repository import UserRepository
from authguard.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.password_reset_tokens = PasswordResetTokenRepository(self.session)
        self.email_verification_tokens = EmailVerificationTokenRepository(self.session)
        self.login_attempts = LoginAttemptRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

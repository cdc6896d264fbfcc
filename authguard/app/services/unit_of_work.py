from abc import ABC, abstractmethod

from authguard.app.repositories.email_verification_token_repository import (
    IEmailVerificationTokenRepository,
)
from authguard.app.repositories.login_attempt_repository import ILoginAttemptRepository
from authguard.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from authguard.app.repositories.session_repository import ISessionRepository
from authguard.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    password_reset_tokens: IPasswordResetTokenRepository
    email_verification_tokens: IEmailVerificationTokenRepository
    login_attempts: ILoginAttemptRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

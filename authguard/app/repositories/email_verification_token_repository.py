from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from authguard.domain.entities import EmailVerificationToken


class IEmailVerificationTokenRepository(ABC):
    """EmailVerificationToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: EmailVerificationToken) -> EmailVerificationToken:
        """Create a new verification token"""
        pass

    @abstractmethod
    async def mark_used(self, token_hash: str, now: datetime) -> Optional[EmailVerificationToken]:
        """Atomically consume a redeemable token, or return None"""
        pass

    @abstractmethod
    async def expire_outstanding_for_user(self, user_id: UUID, now: datetime) -> int:
        """Consume every still-unused token of a user. Returns count."""
        pass

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from authguard.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        pass

    @abstractmethod
    async def mark_used(self, token_hash: str, now: datetime) -> Optional[PasswordResetToken]:
        """
        Atomically consume a redeemable token.

        Sets used_at only if the token is unused and now < expires_at.
        Returns the consumed token, or None when nothing matched.
        """
        pass

    @abstractmethod
    async def expire_outstanding_for_user(self, user_id: UUID, now: datetime) -> int:
        """Consume every still-unused token of a user. Returns count."""
        pass

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from authguard.domain.entities import LoginAttempt


class ILoginAttemptRepository(ABC):
    """LoginAttempt repository interface - application layer"""

    @abstractmethod
    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Record a sign-in attempt"""
        pass

    @abstractmethod
    async def get_failures_by_email(self, email: str, since: datetime) -> List[LoginAttempt]:
        """Failed attempts for an email since a moment, oldest first"""
        pass

    @abstractmethod
    async def get_failures_by_ip(self, ip_address: str, since: datetime) -> List[LoginAttempt]:
        """Failed attempts from an address since a moment, oldest first"""
        pass

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class SendResult(BaseModel):
    delivered: bool
    reason: Optional[str] = None


class IEmailService(ABC):
    """Transactional email delivery - application layer"""

    @abstractmethod
    async def send_password_reset(self, email: str, token: str) -> SendResult:
        """Send the plaintext reset token inside a reset link"""
        pass

    @abstractmethod
    async def send_verification(self, email: str, token: str) -> SendResult:
        """Send the plaintext verification token inside a verify link"""
        pass


class EmailDispatcher(ABC):
    """
    Fire-and-forget wrapper around IEmailService.

    Dispatch returns immediately; delivery outcome is logged, never returned
    to the request that triggered it.
    """

    @abstractmethod
    def dispatch_password_reset(self, email: str, token: str) -> None:
        pass

    @abstractmethod
    def dispatch_verification(self, email: str, token: str) -> None:
        pass

    @abstractmethod
    def detach(self) -> None:
        """The request is gone; deliver pending and later sends without it"""
        pass

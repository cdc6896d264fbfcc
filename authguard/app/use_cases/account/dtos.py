"""
Account Use Case DTOs
"""

from typing import Optional

from pydantic import BaseModel

from authguard.app.services.session_manager import IssuedSession
from authguard.app.use_cases.auth.dtos import CamelModel, UserResponse


class UpdateAccountCommand(CamelModel):
    action: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AccountUpdateResponse(CamelModel):
    success: bool = True
    user: Optional[UserResponse] = None
    message: Optional[str] = None


class AccountUpdateResult(BaseModel):
    """Response body plus the session that replaced every previous one"""

    response: AccountUpdateResponse
    session: IssuedSession

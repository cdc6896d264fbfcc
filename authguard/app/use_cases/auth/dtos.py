"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain.
JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from authguard.app.services.session_manager import IssuedSession
from authguard.domain.entities import User

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent."


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    terms_accepted: Optional[bool] = None


# ============================================================================
# Response DTOs
# ============================================================================


class GenericMessageResponse(CamelModel):
    """Response whose body must not depend on which account was asked about"""

    success: bool = True
    message: str


class SuccessResponse(CamelModel):
    success: bool = True


class UserResponse(CamelModel):
    """Public view of a user, also the shape of the session user"""

    id: UUID
    email: str
    username: str
    is_admin: bool
    email_verified: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            is_admin=user.is_admin,
            email_verified=user.email_verified,
        )


class UserEnvelope(CamelModel):
    success: bool = True
    user: UserResponse


class AvailabilityResponse(CamelModel):
    success: bool = True
    available: bool
    error: Optional[str] = None


# ============================================================================
# Use case results (not serialized directly)
# ============================================================================


class AuthenticatedUser(BaseModel):
    """A user plus the session just issued for them"""

    user: UserResponse
    session: IssuedSession


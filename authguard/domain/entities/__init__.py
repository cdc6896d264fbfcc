"""
Auth Guard Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    ResetTokenState,
    AccountAction,
    AvailabilityType,
)

# Export all entities
from .user import User
from .session import Session
from .password_reset_token import PasswordResetToken
from .email_verification_token import EmailVerificationToken
from .login_attempt import LoginAttempt

__all__ = [
    # Enums
    "ResetTokenState",
    "AccountAction",
    "AvailabilityType",
    # Entities
    "User",
    "Session",
    "PasswordResetToken",
    "EmailVerificationToken",
    "LoginAttempt",
]

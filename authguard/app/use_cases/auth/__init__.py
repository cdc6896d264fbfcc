"""
Authentication Use Cases

Registration, sign-in, password reset and email verification.
"""

from .check_availability_use_case import CheckAvailabilityUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .dtos import (
    FORGOT_PASSWORD_MESSAGE,
    AuthenticatedUser,
    AvailabilityResponse,
    GenericMessageResponse,
    RegisterCommand,
    SuccessResponse,
    UserEnvelope,
    UserResponse,
)
from .login_use_case import LoginUseCase
from .logout_use_case import LogoutUseCase
from .register_use_case import RegisterUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .resend_verification_use_case import ResendVerificationUseCase
from .verify_email_use_case import VerifyEmailUseCase

__all__ = [
    # Use Cases
    "CheckAvailabilityUseCase",
    "ConfirmPasswordResetUseCase",
    "LoginUseCase",
    "LogoutUseCase",
    "RegisterUseCase",
    "RequestPasswordResetUseCase",
    "ResendVerificationUseCase",
    "VerifyEmailUseCase",
    # Commands & Responses
    "FORGOT_PASSWORD_MESSAGE",
    "AuthenticatedUser",
    "AvailabilityResponse",
    "GenericMessageResponse",
    "RegisterCommand",
    "SuccessResponse",
    "UserEnvelope",
    "UserResponse",
]

"""
Auth Guard Domain Enums
"""

from enum import Enum


class ResetTokenState(str, Enum):
    """Lifecycle of a password reset token"""

    issued = "issued"
    consumed = "consumed"
    expired = "expired"


class AccountAction(str, Enum):
    """Credential changes accepted by PATCH /auth/account"""

    update_email = "updateEmail"
    update_username = "updateUsername"
    update_password = "updatePassword"


class AvailabilityType(str, Enum):
    username = "username"
    email = "email"

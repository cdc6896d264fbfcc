"""
Account Use Cases
"""

from .dtos import AccountUpdateResponse, AccountUpdateResult, UpdateAccountCommand
from .update_account_use_case import UpdateAccountUseCase

__all__ = [
    "UpdateAccountUseCase",
    "AccountUpdateResponse",
    "AccountUpdateResult",
    "UpdateAccountCommand",
]

from typing import Optional
from uuid import UUID

from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.entities import AvailabilityType
from authguard.domain.validation import (
    email_error,
    normalize_email,
    normalize_username,
    username_error,
)
from authguard.result import Error, Result, Return
from .dtos import AvailabilityResponse


class CheckAvailabilityUseCase:
    """
    Use case for live username/email availability checks.

    Format problems are reported as ``available=False`` with a reason, not
    as request errors. ``exclude_user_id`` lets a signed-in user check their
    own current value.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        availability_type: Optional[str],
        value: Optional[str],
        exclude_user_id: Optional[str] = None,
    ) -> Result[AvailabilityResponse]:
        if not availability_type or not value:
            return Return.err(Error("VALIDATION_ERROR", "Type and value are required"))

        try:
            kind = AvailabilityType(availability_type)
        except ValueError:
            return Return.err(
                Error("VALIDATION_ERROR", 'Invalid type. Must be "username" or "email"')
            )

        exclude = None
        if exclude_user_id:
            try:
                exclude = UUID(exclude_user_id)
            except ValueError:
                exclude = None

        if kind == AvailabilityType.username:
            normalized = normalize_username(value)
            problem = username_error(normalized)
        else:
            normalized = normalize_email(value)
            problem = email_error(normalized)

        if problem:
            return Return.ok(AvailabilityResponse(available=False, error=problem))

        async with self.uow:
            if kind == AvailabilityType.username:
                available = await self.uow.users.is_username_available(normalized, exclude)
            else:
                available = await self.uow.users.is_email_available(normalized, exclude)

        return Return.ok(AvailabilityResponse(available=available))

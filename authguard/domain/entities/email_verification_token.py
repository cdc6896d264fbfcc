"""
EmailVerificationToken Entity
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from authguard.domain.base import utc_now


class EmailVerificationToken(SQLModel, table=True):
    """
    EmailVerificationToken entity - confirms ownership of an address.

    Business Rules:
    - Bound to the address it was sent to; a later email change makes it useless
    - Expires after 24 hours, single-use like reset tokens
    """

    __tablename__ = "email_verification_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    email: str = Field(max_length=255)
    token_hash: str = Field(max_length=64, unique=True)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

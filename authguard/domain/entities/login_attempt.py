"""
LoginAttempt Entity
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authguard.domain.base import utc_now


class LoginAttempt(SQLModel, table=True):
    """One sign-in attempt; failures within a window lock the email and the IP"""

    __tablename__ = "login_attempts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    success: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_login_attempt_email_created", "email", "created_at"),
        Index("idx_login_attempt_ip_created", "ip_address", "created_at"),
    )

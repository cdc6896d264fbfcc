"""
PasswordResetToken Entity

Single-use, expiring password reset secrets. Only the digest is stored.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authguard.domain.base import utc_now
from .enums import ResetTokenState


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - secure password reset tokens.

    Business Rules:
    - Expires 1 hour after issuance
    - token_hash is the SHA-256 of the emailed token, never the token itself
    - used_at is set at most once, by a conditional update
    - Rows are kept for audit; expiry is enforced logically
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(max_length=64, unique=True)  # SHA-256 output
    request_ip: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_password_reset_expires_at", "expires_at"),
        Index("idx_password_reset_used_at", "used_at"),
    )

    def is_redeemable(self, now: datetime) -> bool:
        return self.used_at is None and now < self.expires_at

    def state(self, now: datetime) -> ResetTokenState:
        if self.used_at is not None:
            return ResetTokenState.consumed
        if now >= self.expires_at:
            return ResetTokenState.expired
        return ResetTokenState.issued

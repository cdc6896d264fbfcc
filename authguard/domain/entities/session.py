"""
Session Entity

Server-side record behind every session JWT.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from authguard.domain.base import utc_now


class Session(SQLModel, table=True):
    """
    Session entity - backs the signed session token held by the client.

    Business Rules:
    - claims snapshot the user's identity at issuance
    - A credential change revokes every session of the user
    - Revoked or expired sessions never resolve
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    claims: dict = Field(default_factory=dict, sa_column=Column(JSON))

    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    issued_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_revoked", "revoked"),
    )

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at

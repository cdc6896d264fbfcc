"""
User Entity

Account credentials and the identity data embedded in session claims.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authguard.domain.base import utc_now


class User(SQLModel, table=True):
    """
    User entity - an account that can sign in.

    Business Rules:
    - Email and username are unique, stored lowercase
    - Password stored as bcrypt hash
    - Any change to email, username or password reissues the session
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    username: str = Field(unique=True, index=True, max_length=20)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    is_admin: bool = Field(default=False)
    email_verified: bool = Field(default=False)

    terms_accepted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_email_verified", "email_verified"),)

    def session_claims(self) -> dict:
        """Identity snapshot carried by a session"""
        return {
            "email": self.email,
            "username": self.username,
            "is_admin": self.is_admin,
            "email_verified": self.email_verified,
        }

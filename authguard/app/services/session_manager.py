"""
Session Manager

Issues, reissues, revokes and resolves server-backed sessions. The client
holds a signed JWT naming the session id; the ``sessions`` row decides
whether that token still counts.

All methods run inside a unit of work the caller has already entered, and
the caller commits.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from authguard.api.utils.jwt import create_session_token, verify_jwt
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.domain.base import utc_now
from authguard.domain.entities import Session, User
from config import ApplicationConfig


class IssuedSession(BaseModel):
    """A freshly signed session token and the row behind it"""

    token: str
    session_id: UUID
    expires_at: datetime


class SessionClaims(BaseModel):
    """Identity carried by a live session"""

    session_id: UUID
    user_id: UUID
    email: str
    username: str
    is_admin: bool = False
    email_verified: bool = False


class SessionManager:
    """
    Business Rules:
    - Every token maps to exactly one sessions row
    - reissue revokes all of the user's sessions before issuing the new one
    - A token resolves only while its row exists, is not revoked and has not expired
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.ttl = ttl or timedelta(days=ApplicationConfig.SESSION_TTL_DAYS)
        self.clock = clock

    async def issue(self, user: User) -> IssuedSession:
        now = self.clock()
        session = Session(
            user_id=user.id,
            claims=user.session_claims(),
            issued_at=now,
            expires_at=now + self.ttl,
        )
        session = await self.uow.sessions.create(session)

        token = create_session_token(user.id, session.id, session.claims, session.expires_at)
        return IssuedSession(token=token, session_id=session.id, expires_at=session.expires_at)

    async def reissue(self, user: User) -> IssuedSession:
        """Revoke every session of the user, then issue a new one"""
        await self.revoke_all(user.id)
        return await self.issue(user)

    async def revoke(self, session_id: UUID) -> bool:
        return await self.uow.sessions.revoke_by_id(session_id)

    async def revoke_all(self, user_id: UUID) -> int:
        return await self.uow.sessions.revoke_all_by_user_id(user_id)

    async def resolve(self, token: str) -> Optional[SessionClaims]:
        """
        Map a session token to its claims.

        Returns:
            SessionClaims, or None for a bad signature, an expired token, or a
            session row that is missing, revoked or expired
        """
        payload = verify_jwt(token)
        if payload is None:
            return None

        try:
            session_id = UUID(str(payload.get("sid")))
        except ValueError:
            return None

        session = await self.uow.sessions.get_by_id(session_id)
        if session is None or not session.is_active(self.clock()):
            return None

        claims = session.claims or {}
        return SessionClaims(
            session_id=session.id,
            user_id=session.user_id,
            email=claims.get("email", ""),
            username=claims.get("username", ""),
            is_admin=bool(claims.get("is_admin", False)),
            email_verified=bool(claims.get("email_verified", False)),
        )

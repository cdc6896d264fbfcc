from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.app.repositories.email_verification_token_repository import (
    IEmailVerificationTokenRepository,
)
from authguard.domain.entities import EmailVerificationToken


class EmailVerificationTokenRepository(IEmailVerificationTokenRepository):
    """EmailVerificationToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: EmailVerificationToken) -> EmailVerificationToken:
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def mark_used(self, token_hash: str, now: datetime) -> Optional[EmailVerificationToken]:
        stmt = (
            update(EmailVerificationToken)
            .where(
                EmailVerificationToken.token_hash == token_hash,
                col(EmailVerificationToken.used_at).is_(None),
                col(EmailVerificationToken.expires_at) > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount != 1:
            return None

        found = await self.session.exec(
            select(EmailVerificationToken).where(EmailVerificationToken.token_hash == token_hash)
        )
        token = found.one_or_none()
        if token is not None:
            await self.session.refresh(token)
        return token

    async def expire_outstanding_for_user(self, user_id: UUID, now: datetime) -> int:
        stmt = (
            update(EmailVerificationToken)
            .where(
                EmailVerificationToken.user_id == user_id,
                col(EmailVerificationToken.used_at).is_(None),
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

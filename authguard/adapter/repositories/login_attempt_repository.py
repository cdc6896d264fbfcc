from datetime import datetime
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.app.repositories.login_attempt_repository import ILoginAttemptRepository
from authguard.domain.entities import LoginAttempt


class LoginAttemptRepository(ILoginAttemptRepository):
    """LoginAttempt repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt

    async def get_failures_by_email(self, email: str, since: datetime) -> List[LoginAttempt]:
        stmt = (
            select(LoginAttempt)
            .where(
                LoginAttempt.email == email,
                LoginAttempt.success == False,
                LoginAttempt.created_at >= since,
            )
            .order_by(LoginAttempt.created_at)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_failures_by_ip(self, ip_address: str, since: datetime) -> List[LoginAttempt]:
        stmt = (
            select(LoginAttempt)
            .where(
                LoginAttempt.ip_address == ip_address,
                LoginAttempt.success == False,
                LoginAttempt.created_at >= since,
            )
            .order_by(LoginAttempt.created_at)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

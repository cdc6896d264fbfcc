from typing import Optional

from authguard.app.services.session_manager import SessionManager
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.result import Result, Return
from .dtos import SuccessResponse


class LogoutUseCase:
    """Revoke the session behind a token; a missing or dead token is not an error"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token: Optional[str]) -> Result[SuccessResponse]:
        if token:
            async with self.uow:
                sessions = SessionManager(self.uow)
                claims = await sessions.resolve(token)
                if claims is not None:
                    await sessions.revoke(claims.session_id)
                    await self.uow.commit()
        return Return.ok(SuccessResponse())

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.adapter.services.background_email_dispatcher import BackgroundEmailDispatcher
from authguard.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authguard.api.error import AuthError
from authguard.api.utils.rate_limit import RateLimiters
from authguard.api.utils.session_cookie import read_session_token
from authguard.app.services.email_service import EmailDispatcher, IEmailService
from authguard.app.services.session_manager import SessionClaims, SessionManager
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.result import Error
from config import ApplicationConfig

# Bound parameters carry password and token hashes; keep them out of error text
engine = create_async_engine(
    ApplicationConfig.DB_URI, echo=False, future=True, hide_parameters=True
)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

NOT_AUTHENTICATED = Error("NOT_AUTHENTICATED", "Not authenticated")

UnitOfWorkFactory = Callable[[], AsyncContextManager[UnitOfWork]]


@asynccontextmanager
async def open_unit_of_work() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_unit_of_work():
    async with open_unit_of_work() as uow:
        yield uow


def get_unit_of_work_factory() -> UnitOfWorkFactory:
    """
    Dependency for work that must finish even if the request is cancelled.

    Each call opens its own session, so nothing in the request's dependency
    teardown can close it underneath the caller.
    """
    return open_unit_of_work


def get_rate_limiters(request: Request) -> RateLimiters:
    return request.app.state.rate_limiters


def get_email_service(request: Request) -> IEmailService:
    return request.app.state.email_service


def get_email_dispatcher(
    background_tasks: BackgroundTasks,
    email_service: IEmailService = Depends(get_email_service),
) -> EmailDispatcher:
    return BackgroundEmailDispatcher(background_tasks, email_service)


async def get_optional_session(
    request: Request, uow: UnitOfWork = Depends(get_unit_of_work)
) -> Optional[SessionClaims]:
    """
    Resolve the caller's session from the Bearer header or the session cookie.

    Returns:
        SessionClaims, or None when there is no token or it no longer resolves
    """
    token = read_session_token(request)
    if token is None:
        return None

    async with uow:
        return await SessionManager(uow).resolve(token)


async def get_current_session(
    claims: Optional[SessionClaims] = Depends(get_optional_session),
) -> SessionClaims:
    """
    Dependency for endpoints that need a signed-in caller.

    Raises:
        AuthError: 401 when there is no live session
    """
    if claims is None:
        raise AuthError(NOT_AUTHENTICATED)
    return claims

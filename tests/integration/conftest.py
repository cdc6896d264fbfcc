from contextlib import asynccontextmanager
from typing import List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from authguard.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authguard.api.app import create_app
from authguard.app.services.email_service import IEmailService, SendResult
from authguard.depends import get_email_service, get_unit_of_work, get_unit_of_work_factory
from config import ApplicationConfig

ORIGIN = "http://test"
PASSWORD = "SecurePass123"


class IntegrationConfig(ApplicationConfig):
    CACHE_BACKEND = "memory"
    APP_ORIGINS = [ORIGIN]
    CORS_ORIGINS = []


class RecordingEmailService(IEmailService):
    """Keeps every email instead of sending it"""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    async def send_password_reset(self, email: str, token: str) -> SendResult:
        self.sent.append(("password_reset", email, token))
        return SendResult(delivered=True)

    async def send_verification(self, email: str, token: str) -> SendResult:
        self.sent.append(("verification", email, token))
        return SendResult(delivered=True)

    def tokens(self, kind: str) -> List[str]:
        return [token for sent_kind, _, token in self.sent if sent_kind == kind]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest_asyncio.fixture
async def app(db_session, email_service):
    app = create_app(IntegrationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    @asynccontextmanager
    async def shared_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_unit_of_work_factory] = lambda: shared_unit_of_work
    app.dependency_overrides[get_email_service] = lambda: email_service
    yield app
    await app.state.counter_store.close()


@pytest_asyncio.fixture
async def client(app):
    """Client calling from the trusted app origin"""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers={"Origin": ORIGIN}
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def bare_client(app):
    """Client that sends no Origin or Referer"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def registered_user(client):
    """
    Register dj@example.com through the API.

    Returns the user JSON plus the session token. The cookie jar is cleared
    so each test chooses how to present the session.
    """
    response = await client.post(
        "/auth/register",
        json={
            "email": "dj@example.com",
            "username": "dj_nexus",
            "password": PASSWORD,
            "termsAccepted": True,
        },
    )
    assert response.status_code == 200
    token = response.cookies.get(ApplicationConfig.SESSION_COOKIE_NAME)
    client.cookies.clear()
    return {**response.json()["user"], "password": PASSWORD, "token": token}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer

import os

# Set test environment
os.environ["DEBUG"] = "true"
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["IDENTITY_PROJECT_ID"] = "civicalert-test"
os.environ["IDENTITY_API_KEY"] = "test-api-key"
os.environ["RECAPTCHA_SECRET_KEY"] = "test-recaptcha-secret"

from collections.abc import AsyncGenerator
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from civicalert.config import get_settings
from civicalert.container import ServiceContainer, get_services
from civicalert.database import Base, get_db
from civicalert.exceptions import ConflictError, TokenInvalid
from civicalert.main import app
from civicalert.models import UserRecord
from civicalert.services.session_tokens import SessionTokenIssuer
from civicalert.services.user_store import UserRecordStore

TEST_DATABASE_URL = os.environ["DATABASE_URL"]


class FakeIdentityProvider:
    """In-memory identity provider recording every call."""

    def __init__(self):
        self.accounts: dict[str, str] = {}  # email -> user id
        self.id_tokens: dict[str, str] = {}  # id token -> user id
        self.token_errors: dict[str, Exception] = {}
        self.create_error: Optional[Exception] = None
        self.created: list[tuple[str, str]] = []
        self.verified: list[str] = []

    async def create_account(self, email: str, password: str) -> str:
        if self.create_error is not None:
            raise self.create_error
        if email in self.accounts:
            raise ConflictError("Email already exists")
        user_id = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = user_id
        self.created.append((email, password))
        return user_id

    async def verify_id_token(self, id_token: str) -> dict:
        self.verified.append(id_token)
        if id_token in self.token_errors:
            raise self.token_errors[id_token]
        if id_token not in self.id_tokens:
            raise TokenInvalid()
        return {"sub": self.id_tokens[id_token]}


class FakeBotCheck:
    def __init__(self, result: bool = True):
        self.result = result
        self.calls: list[Optional[str]] = []

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        self.calls.append(token)
        return self.result


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def bot_check() -> FakeBotCheck:
    return FakeBotCheck()


@pytest.fixture
def issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(get_settings())


@pytest_asyncio.fixture
async def services(
    identity: FakeIdentityProvider, bot_check: FakeBotCheck, issuer: SessionTokenIssuer
) -> AsyncGenerator[ServiceContainer, None]:
    container = ServiceContainer(
        settings=get_settings(),
        http=httpx.AsyncClient(),
        identity=identity,
        bot_check=bot_check,
        issuer=issuer,
    )
    yield container
    await container.aclose()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, services: ServiceContainer
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and service overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_services] = lambda: services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> UserRecord:
    """The user record "u1" (alice, employee)."""
    store = UserRecordStore(db_session)
    user = await store.set("u1", username="alice", email="a@x.com", role="employee")
    return user


@pytest.fixture
def auth_cookie(test_user: UserRecord, issuer: SessionTokenIssuer) -> dict[str, str]:
    """Cookie header carrying a valid access token for the test user."""
    token = issuer.issue(test_user.id).access_token
    return {"Cookie": f"accessToken={token}"}


@pytest.fixture
def signup_data() -> dict[str, str]:
    return {
        "username": "alice",
        "email": "a@x.com",
        "password": "secret",
        "role": "employee",
    }

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.database import Base, get_db
from app.api.deps import get_password_hash
from app.models.customer import Customer
from app.models.quote import Quote
from app.models.user import User
from app.security.rate_limiter import login_rate_limiter, public_rate_limiter
from app.services.email_service import MockEmailService, get_email_service

from factories import (
    CustomerFactory,
    QuoteFactory,
    UserFactory,
    EditorUserFactory,
    SuperAdminUserFactory,
)

# Test database URL (SQLite for testing). A file database, because audit and
# analytics writes open their own connection.
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

TEST_PASSWORD = "testpassword123"  # noqa: S105


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    login_rate_limiter.reset()
    public_rate_limiter.reset()
    yield
    login_rate_limiter.reset()
    public_rate_limiter.reset()


async def _create_user(db: AsyncSession, factory, email: str) -> User:
    user = User(**factory(email=email, hashed_password=get_password_hash(TEST_PASSWORD)))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(test_db: AsyncSession):
    """Create a test user (ADMIN)."""
    return await _create_user(test_db, UserFactory, "test@example.com")


@pytest_asyncio.fixture
async def editor_user(test_db: AsyncSession):
    return await _create_user(test_db, EditorUserFactory, "editor@example.com")


@pytest_asyncio.fixture
async def super_admin_user(test_db: AsyncSession):
    return await _create_user(test_db, SuperAdminUserFactory, "owner@example.com")


@pytest_asyncio.fixture
async def test_customer(test_db: AsyncSession):
    customer = Customer(**CustomerFactory(
        contact_name="Dana Reyes",
        company_name="Reyes Roofing",
        email="dana@reyesroofing.example",
    ))
    test_db.add(customer)
    await test_db.commit()
    await test_db.refresh(customer)
    return customer


@pytest.fixture
def make_quote(test_db: AsyncSession):
    """Persist a quote built from a factory, with column overrides."""

    async def _make(factory=QuoteFactory, **overrides) -> Quote:
        quote = Quote(**factory(**overrides))
        test_db.add(quote)
        await test_db.commit()
        await test_db.refresh(quote)
        return quote

    return _make


@pytest.fixture
def email_service():
    """Records outgoing mail instead of calling Brevo."""
    return MockEmailService()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, email_service: MockEmailService):
    """Create test client with overridden database and email service."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _login_headers(client: AsyncClient, email: str, password: str = TEST_PASSWORD) -> dict:
    response = await client.post(
        "/api/admin/auth/login",
        json={"email": email, "password": password},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client: AsyncClient):
    """Bearer headers for a given staff user."""

    async def _headers(user: User) -> dict:
        return await _login_headers(client, user.email)

    return _headers


@pytest_asyncio.fixture
async def authenticated_client(client: AsyncClient, test_user: User):
    """Create authenticated test client."""
    client.headers.update(await _login_headers(client, test_user.email))
    return client

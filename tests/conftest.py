import os
import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from nightshift.api.deps import get_db
from nightshift.core.clock import local_now
from nightshift.core.config import get_settings
from nightshift.core.security import Identity, create_access_token
from nightshift.main import create_app
from nightshift.models import Base, Job, Location, User
from nightshift.services import user_service

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _configure_sqlite_connection(dbapi_conn, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the test transaction.
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn):
    conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def test_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared in-memory database for every connection.
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool, echo=False)
        event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
        event.listen(engine.sync_engine, "begin", _begin_sqlite_transaction)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession]:
    """Provide a transactional session that rolls back after each test."""
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = AsyncSession(bind=connection, expire_on_commit=False)

    yield session

    await session.close()
    await transaction.rollback()
    await connection.close()


@pytest_asyncio.fixture(loop_scope="session")
async def client(db_session) -> AsyncGenerator[AsyncClient]:
    app = create_app()

    # Yield the test session directly; the outer transaction is rolled back by db_session
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", follow_redirects=True
    ) as ac:
        yield ac


def make_identity(**overrides) -> Identity:
    """Helper to create an identity with a unique id and email."""
    suffix = uuid.uuid4().hex[:8]
    data = {
        "id": uuid.uuid4(),
        "name": f"User {suffix}",
        "email": f"user.{suffix}@example.com",
        "avatar_url": f"https://i.pravatar.cc/150?u={suffix}",
    }
    data.update(overrides)
    return Identity(**data)


def auth_headers(identity: Identity) -> dict[str, str]:
    token = create_access_token(identity, get_settings())
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(loop_scope="session")
async def owner(db_session) -> User:
    """A venue manager who posts jobs."""
    return await user_service.sync_identity(db_session, make_identity(name="Olivia Owner"))


@pytest_asyncio.fixture(loop_scope="session")
async def worker(db_session) -> User:
    """A worker who applies to jobs."""
    return await user_service.sync_identity(db_session, make_identity(name="Walter Worker"))


@pytest.fixture
def now() -> datetime:
    """Noon today, so jobs dated tomorrow are in the future for the wall clock too."""
    return local_now().replace(hour=12, minute=0, second=0, microsecond=0)


def make_job_payload(job_date: date | None = None, **overrides) -> dict:
    """Helper to create a valid job payload for tomorrow evening."""
    job_date = job_date or local_now().date() + timedelta(days=1)
    data = {
        "role": "Bartender",
        "venue": "The Night Owl",
        "location": {"city": "Tel Aviv", "street": "Dizengoff", "number": "99"},
        "date": job_date.isoformat(),
        "start_time": "20:00",
        "end_time": "23:00",
        "payment_type": "PerHour",
        "payment_amount": "55.50",
        "currency": "ILS",
        "description": "Busy Friday crowd",
    }
    data.update(overrides)
    return data


async def insert_job(db: AsyncSession, owner_id: uuid.UUID, **overrides) -> Job:
    """Persist a job directly, bypassing the future-end-time check (for expired fixtures)."""
    data = {
        "role": "Bartender",
        "venue": "The Night Owl",
        "location": Location(city="Tel Aviv"),
        "date": local_now().date() + timedelta(days=1),
        "start_time": time(20, 0),
        "end_time": time(23, 0),
        "payment_type": "PerHour",
        "payment_amount": Decimal("50.00"),
        "currency": "ILS",
        "description": None,
    }
    data.update(overrides)
    job = Job(**data, created_by=owner_id)
    db.add(job)
    await db.flush()
    await db.refresh(job)
    return job

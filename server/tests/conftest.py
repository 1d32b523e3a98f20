"""Test configuration and fixtures."""

import os

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-bearer-secret-0123456789abcdef")

from datetime import date  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hotel_booking.core.database import Base, get_db  # noqa: E402
from hotel_booking.core.dependencies import create_access_token  # noqa: E402
from hotel_booking.core.permissions import Principal, Role  # noqa: E402
from hotel_booking.models import *  # noqa: E402,F403 - Import all models
from hotel_booking.models.worker import WorkerRole  # noqa: E402
from hotel_booking.schemas.booking import CreateBookingRequest  # noqa: E402
from hotel_booking.schemas.common import Money  # noqa: E402
from hotel_booking.schemas.room import (  # noqa: E402
    CreateHotelRequest,
    CreateRoomRequest,
    CreateUserRequest,
    CreateWorkerRequest,
)
from hotel_booking.services.hotel_service import HotelService  # noqa: E402
from hotel_booking.services.user_service import UserService  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """
    Session factory over a file-backed SQLite database.

    Concurrency tests give every task its own session and connection, which
    an in-memory StaticPool database cannot provide.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create the application with its database dependency bound to the test session."""
    from hotel_booking.main import create_app

    app = create_app()

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def seed_catalog(session: AsyncSession) -> dict:
    """
    Seed one hotel with a two-number room plus a user of every role and a worker.

    Returns plain IDs so tests never touch ORM attributes after a rollback.
    """
    users = UserService(session)
    hotels = HotelService(session)

    guest = await users.create_user(CreateUserRequest(username="guest", email="guest@example.com", phone="+15550100"))
    other_guest = await users.create_user(CreateUserRequest(username="other", email="other@example.com"))
    admin = await users.create_user(CreateUserRequest(username="admin", email="admin@example.com", role=Role.ADMIN))
    moderator = await users.create_user(
        CreateUserRequest(username="moderator", email="moderator@example.com", role=Role.MODERATOR)
    )
    staff = await users.create_user(CreateUserRequest(username="staff", email="staff@example.com", role=Role.WORKER))

    hotel = await hotels.create_hotel(
        CreateHotelRequest(name="Harbour View", city="Lisbon", address="Rua do Cais 1")
    )
    room = await hotels.create_room(
        CreateRoomRequest(
            hotel_id=hotel.id,
            title="Double Room",
            price=Money(amount=12000, currency="EUR"),
            room_numbers=[101, 102]
        )
    )
    worker = await users.create_worker(
        CreateWorkerRequest(
            name="Ana Costa",
            hotel_id=hotel.id,
            user_id=staff.id,
            role=WorkerRole.HOUSEKEEPER,
            email="ana@example.com"
        )
    )

    return {
        "guest_id": guest.id,
        "other_guest_id": other_guest.id,
        "admin_id": admin.id,
        "moderator_id": moderator.id,
        "staff_id": staff.id,
        "hotel_id": hotel.id,
        "room_id": room.id,
        "worker_id": worker.id,
    }


@pytest_asyncio.fixture(scope="function")
async def catalog(test_session):
    """Seeded hotel, room, users and worker IDs."""
    return await seed_catalog(test_session)


@pytest.fixture
def principals(catalog):
    """Principals for each seeded user, keyed by role name."""
    return {
        "guest": Principal.from_roles(catalog["guest_id"], [Role.GUEST]),
        "other_guest": Principal.from_roles(catalog["other_guest_id"], [Role.GUEST]),
        "admin": Principal.from_roles(catalog["admin_id"], [Role.ADMIN]),
        "moderator": Principal.from_roles(catalog["moderator_id"], [Role.MODERATOR]),
        "worker": Principal.from_roles(catalog["staff_id"], [Role.WORKER]),
    }


@pytest.fixture
def auth_headers(catalog):
    """Bearer headers for each seeded user, keyed by role name."""
    def headers(user_id, role: Role) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, [role.value])}"}

    return {
        "guest": headers(catalog["guest_id"], Role.GUEST),
        "other_guest": headers(catalog["other_guest_id"], Role.GUEST),
        "admin": headers(catalog["admin_id"], Role.ADMIN),
        "moderator": headers(catalog["moderator_id"], Role.MODERATOR),
        "worker": headers(catalog["staff_id"], Role.WORKER),
    }


def booking_request(catalog: dict, room_number: int = 101, start: date = date(2024, 6, 1),
                    end: date = date(2024, 6, 3), amount: int = 36000) -> CreateBookingRequest:
    """Build a booking request against the seeded room."""
    return CreateBookingRequest(
        hotel_id=catalog["hotel_id"],
        room_id=catalog["room_id"],
        room_number=room_number,
        date_start=start,
        date_end=end,
        total_price=Money(amount=amount, currency="EUR")
    )


@pytest.fixture
def make_booking_request(catalog):
    """Factory for booking requests against the seeded room."""
    def factory(**kwargs) -> CreateBookingRequest:
        return booking_request(catalog, **kwargs)

    return factory


@pytest.fixture
def booking_payload(catalog):
    """JSON body for POST /v1/booking/create."""
    def factory(room_number: int = 101, start: str = "2024-06-01", end: str = "2024-06-03") -> dict:
        return {
            "hotel_id": str(catalog["hotel_id"]),
            "room_id": str(catalog["room_id"]),
            "room_number": room_number,
            "date_start": start,
            "date_end": end,
            "total_price": {"amount": 36000, "currency": "EUR"},
        }

    return factory

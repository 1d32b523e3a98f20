#!/usr/bin/env python3
"""Setup script for the hotel booking API."""

import asyncio
import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from hotel_booking.core.database import async_session_factory, close_db
from hotel_booking.core.dependencies import create_access_token
from hotel_booking.core.permissions import Role
from hotel_booking.models import Hotel, WorkerRole
from hotel_booking.schemas.common import Money
from hotel_booking.schemas.room import (
    CreateHotelRequest,
    CreateRoomRequest,
    CreateUserRequest,
    CreateWorkerRequest,
)
from hotel_booking.services.hotel_service import HotelService
from hotel_booking.services.user_service import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Bring the database schema up to the latest migration."""
    logger.info("Setting up database...")

    try:
        alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

        logger.info("Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed")

    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        raise


async def create_sample_data():
    """Create a demo hotel with rooms, staff and users, then print their tokens."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        existing_hotels = await db.execute(select(func.count()).select_from(Hotel))
        if existing_hotels.scalar() > 0:
            logger.info("Sample data already exists, skipping...")
            return

        users = UserService(db)
        hotels = HotelService(db)

        admin = await users.create_user(CreateUserRequest(
            username="admin", email="admin@example.com", role=Role.ADMIN
        ))
        moderator = await users.create_user(CreateUserRequest(
            username="moderator", email="moderator@example.com", role=Role.MODERATOR
        ))
        guest = await users.create_user(CreateUserRequest(
            username="guest",
            email="guest@example.com",
            phone="+15550100",
            country="Portugal",
            city="Porto",
        ))
        staff = await users.create_user(CreateUserRequest(
            username="housekeeping", email="housekeeping@example.com", role=Role.WORKER
        ))

        hotel = await hotels.create_hotel(CreateHotelRequest(
            name="Harbour View",
            city="Lisbon",
            address="Rua do Cais 1",
            description="Waterfront hotel a short walk from the old town",
            rating=4.5,
            cheapest_price=Money(amount=9000, currency="EUR"),
            featured=True,
        ))

        await hotels.create_room(CreateRoomRequest(
            hotel_id=hotel.id,
            title="Single Room",
            price=Money(amount=9000, currency="EUR"),  # €90.00
            max_people=1,
            room_numbers=[101, 102, 103],
        ))
        await hotels.create_room(CreateRoomRequest(
            hotel_id=hotel.id,
            title="Double Room",
            price=Money(amount=14000, currency="EUR"),  # €140.00
            max_people=2,
            room_numbers=[201, 202],
        ))

        worker = await users.create_worker(CreateWorkerRequest(
            name="Ana Costa",
            hotel_id=hotel.id,
            user_id=staff.id,
            role=WorkerRole.HOUSEKEEPER,
            email="housekeeping@example.com",
        ))

        logger.info("Sample data created successfully!")
        logger.info(f"Hotel id: {hotel.id}")
        logger.info(f"Housekeeper worker id: {worker.id}")

        for user, role in (
            (admin, Role.ADMIN),
            (moderator, Role.MODERATOR),
            (guest, Role.GUEST),
            (staff, Role.WORKER),
        ):
            token = create_access_token(user.id, [role.value], username=user.username)
            logger.info(f"Bearer token for {user.username}: {token}")


async def seed():
    try:
        await create_sample_data()
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting hotel booking API setup...")

    # Migrations run their own event loop
    setup_database()

    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn hotel_booking.main:app --reload")


if __name__ == "__main__":
    main()

"""User and worker service."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.user import User
from ..models.worker import Worker
from ..schemas.room import CreateUserRequest, CreateWorkerRequest
from .hotel_service import HotelService

logger = logging.getLogger(__name__)


class UserService:
    """Service for users and hotel workers."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.hotel_service = HotelService(db)

    async def create_user(self, request: CreateUserRequest) -> User:
        """
        Create a new user.

        Raises:
            ConflictError: If username or email is already taken
        """
        user = User(
            username=request.username,
            email=request.email,
            phone=request.phone,
            country=request.country,
            city=request.city,
            role=request.role.value
        )

        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "User creation failed - duplicate username or email",
                extra={"username": request.username, "email": request.email}
            )
            raise ConflictError(
                detail=f"User with username '{request.username}' or email '{request.email}' already exists"
            ) from e

        logger.info(
            "User created successfully",
            extra={"user_id": str(user.id), "username": user.username, "role": user.role}
        )

        return user

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: UUID) -> User:
        """Get user by ID or raise NotFoundError."""
        user = await self.get_user_by_id(user_id)
        if not user:
            logger.warning("User not found", extra={"user_id": str(user_id)})
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def create_worker(self, request: CreateWorkerRequest) -> Worker:
        """
        Create a worker attached to a hotel.

        Raises:
            NotFoundError: If the hotel or linked user does not exist
        """
        await self.hotel_service.get_hotel_by_id_or_raise(request.hotel_id)
        if request.user_id:
            await self.get_user_by_id_or_raise(request.user_id)

        worker = Worker(
            name=request.name,
            hotel_id=request.hotel_id,
            user_id=request.user_id,
            role=request.role.value,
            email=request.email,
            phone=request.phone,
            is_active=True
        )

        self.db.add(worker)
        await self.db.commit()

        logger.info(
            "Worker created successfully",
            extra={"worker_id": str(worker.id), "hotel_id": str(worker.hotel_id), "role": worker.role}
        )

        return worker

    async def get_worker_by_id(self, worker_id: UUID) -> Worker | None:
        """Get worker by ID."""
        stmt = select(Worker).where(Worker.id == worker_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_worker_by_id_or_raise(self, worker_id: UUID) -> Worker:
        """Get worker by ID or raise NotFoundError."""
        worker = await self.get_worker_by_id(worker_id)
        if not worker:
            logger.warning("Worker not found", extra={"worker_id": str(worker_id)})
            raise NotFoundError(resource_type="worker", resource_id=str(worker_id))
        return worker

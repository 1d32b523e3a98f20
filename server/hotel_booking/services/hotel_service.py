"""Hotel and room service for catalog operations."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.hotel import Hotel
from ..models.room import Room, RoomNumber
from ..schemas.room import CreateHotelRequest, CreateRoomRequest

logger = logging.getLogger(__name__)


class HotelService:
    """Service for hotel, room and room-number lookups and creation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_hotel(self, request: CreateHotelRequest) -> Hotel:
        """
        Create a new hotel.

        Args:
            request: Hotel creation request

        Returns:
            Created hotel entity
        """
        hotel = Hotel(
            name=request.name,
            type=request.type,
            city=request.city,
            address=request.address,
            description=request.description,
            rating=request.rating,
            cheapest_price_amount=request.cheapest_price.amount,
            featured=request.featured
        )

        self.db.add(hotel)
        await self.db.commit()

        logger.info(
            "Hotel created successfully",
            extra={"hotel_id": str(hotel.id), "hotel_name": hotel.name, "city": hotel.city}
        )

        return hotel

    async def create_room(self, request: CreateRoomRequest) -> Room:
        """
        Create a room type with its room-numbers.

        Every room-number starts with an empty reserved-date set and the
        room starts out cleaned.

        Args:
            request: Room creation request

        Returns:
            Created room entity with room-numbers loaded

        Raises:
            NotFoundError: If hotel not found
        """
        await self.get_hotel_by_id_or_raise(request.hotel_id)

        room = Room(
            hotel_id=request.hotel_id,
            title=request.title,
            description=request.description,
            max_people=request.max_people,
            price_amount=request.price.amount,
            price_currency=request.price.currency,
            is_cleaned=True,
            needs_cleaning=False,
            room_numbers=[RoomNumber(number=number) for number in request.room_numbers]
        )

        self.db.add(room)
        await self.db.commit()

        logger.info(
            "Room created successfully",
            extra={
                "room_id": str(room.id),
                "hotel_id": str(room.hotel_id),
                "room_numbers": list(request.room_numbers)
            }
        )

        return room

    async def get_hotel_by_id(self, hotel_id: UUID) -> Hotel | None:
        """Get hotel by ID."""
        stmt = select(Hotel).where(Hotel.id == hotel_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_hotel_by_id_or_raise(self, hotel_id: UUID) -> Hotel:
        """Get hotel by ID or raise NotFoundError."""
        hotel = await self.get_hotel_by_id(hotel_id)
        if not hotel:
            logger.warning("Hotel not found", extra={"hotel_id": str(hotel_id)})
            raise NotFoundError(resource_type="hotel", resource_id=str(hotel_id))
        return hotel

    async def get_room_by_id(self, room_id: UUID, refresh: bool = False) -> Room | None:
        """
        Get room by ID.

        Args:
            room_id: Room ID to search for
            refresh: Overwrite any copy already held by the session

        Returns:
            Room if found, None otherwise
        """
        stmt = select(Room).where(Room.id == room_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_room_by_id_or_raise(self, room_id: UUID, refresh: bool = False) -> Room:
        """Get room by ID or raise NotFoundError."""
        room = await self.get_room_by_id(room_id, refresh=refresh)
        if not room:
            logger.warning("Room not found", extra={"room_id": str(room_id)})
            raise NotFoundError(resource_type="room", resource_id=str(room_id))
        return room

    async def get_room_number(self, room_id: UUID, number: int) -> RoomNumber | None:
        """Get a room-number of a room by its number."""
        stmt = select(RoomNumber).where(
            RoomNumber.room_id == room_id,
            RoomNumber.number == number
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_room_number_or_raise(self, room_id: UUID, number: int) -> RoomNumber:
        """Get a room-number or raise NotFoundError."""
        room_number = await self.get_room_number(room_id, number)
        if not room_number:
            logger.warning(
                "Room number not found",
                extra={"room_id": str(room_id), "room_number": number}
            )
            raise NotFoundError(
                resource_type="room number",
                resource_id=str(number),
                detail=f"Room number {number} does not exist in room '{room_id}'"
            )
        return room_number

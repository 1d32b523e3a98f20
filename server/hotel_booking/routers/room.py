"""Room router: room state, availability checks and housekeeping."""

import logging

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession, RequiredAuth
from ..core.permissions import Permission, Principal
from ..models.room import Room as RoomModel
from ..schemas.common import Money
from ..schemas.room import (
    AvailabilityResponse,
    CheckAvailabilityRequest,
    CleanedRoom,
    CleaningRecord,
    CleanRoomRequest,
    GetRoomRequest,
    Room,
    RoomBookingsRequest,
    RoomBookingsResponse,
    RoomNumber,
    WorkerCleaningRequest,
    WorkerCleaningResponse,
)
from ..services.availability_ledger import AvailabilityLedger
from ..services.booking_service import BookingService, booking_to_schema
from ..services.cleaning_service import CleaningService
from ..services.hotel_service import HotelService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/room", tags=["room"])


async def _room_to_schema(db: AsyncSession, room: RoomModel) -> Room:
    """Assemble a room view with every room-number's reserved dates and the cleaning history."""
    ledger = AvailabilityLedger(db)
    room_numbers = [
        RoomNumber(number=rn.number, reserved_dates=sorted(await ledger.reserved_dates(rn.id)))
        for rn in room.room_numbers
    ]
    history = await CleaningService(db).cleaning_history(room.id)

    return Room(
        id=str(room.id),
        hotel_id=str(room.hotel_id),
        title=room.title,
        price=Money(amount=room.price_amount, currency=room.price_currency),
        max_people=room.max_people,
        description=room.description,
        is_cleaned=room.is_cleaned,
        needs_cleaning=room.needs_cleaning,
        last_cleaned_at=room.last_cleaned_at,
        room_numbers=room_numbers,
        cleaning_history=[
            CleaningRecord(worker_id=str(record.worker_id), cleaned_at=record.cleaned_at)
            for record in history
        ]
    )


@router.post("/get", response_model=Room)
async def get_room(
    request: GetRoomRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> Room:
    """Get a room with its room-numbers, reserved dates and cleaning state."""
    principal.require(Permission.ROOM_VIEW, detail="Not authorized to view rooms")

    room = await HotelService(db).get_room_by_id_or_raise(request.room_id, refresh=True)
    return await _room_to_schema(db, room)


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    request: CheckAvailabilityRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> AvailabilityResponse:
    """
    Check whether a room-number is free for every day of a stay.

    The answer is advisory; only ``/v1/booking/create`` claims the dates.
    """
    principal.require(Permission.ROOM_VIEW, detail="Not authorized to view rooms")

    room_number = await HotelService(db).get_room_number_or_raise(request.room_id, request.room_number)
    conflicts = await AvailabilityLedger(db).conflicting_dates(
        room_number.id, request.date_start, request.date_end
    )

    logger.debug(
        "Availability checked",
        extra={
            "room_id": str(request.room_id),
            "room_number": request.room_number,
            "available": not conflicts,
        }
    )

    return AvailabilityResponse(
        room_id=str(request.room_id),
        room_number=request.room_number,
        date_start=request.date_start,
        date_end=request.date_end,
        available=not conflicts,
        conflicting_dates=conflicts
    )


@router.post("/clean", response_model=Room)
async def clean_room(
    request: CleanRoomRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> Room:
    """Record that a worker cleaned a room and return its updated state."""
    room = await CleaningService(db).mark_cleaned(principal, request.room_id, request.worker_id)
    return await _room_to_schema(db, room)


@router.post("/bookings", response_model=RoomBookingsResponse)
async def room_bookings(
    request: RoomBookingsRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> RoomBookingsResponse:
    """List the confirmed bookings holding a room-number, earliest stay first."""
    principal.require(Permission.BOOKING_VIEW_ANY, detail="Not authorized to view bookings of a room")

    await HotelService(db).get_room_number_or_raise(request.room_id, request.room_number)
    bookings = await BookingService(db).confirmed_bookings_for(request.room_id, request.room_number)

    return RoomBookingsResponse(
        room_id=str(request.room_id),
        room_number=request.room_number,
        bookings=[booking_to_schema(b) for b in bookings]
    )


@router.post("/cleaned", response_model=WorkerCleaningResponse)
async def worker_cleaned_rooms(
    request: WorkerCleaningRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> WorkerCleaningResponse:
    """List the rooms a worker is credited with cleaning."""
    principal.require(Permission.ROOM_CLEAN, detail="Not authorized to view cleaning records")

    records = await CleaningService(db).cleaned_rooms(request.worker_id)

    return WorkerCleaningResponse(
        worker_id=str(request.worker_id),
        cleaned_rooms=[
            CleanedRoom(room_id=str(record.room_id), cleaned_at=record.cleaned_at)
            for record in records
        ]
    )

"""Booking service: creation, cancellation and reads of room bookings."""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import utcnow
from ..core.exceptions import (
    AuthorizationError,
    InconsistencyError,
    InvalidStateError,
    NotFoundError,
    RoomUnavailableError,
)
from ..core.locks import room_number_lock
from ..core.observability import metrics_collector
from ..core.permissions import Permission, Principal
from ..models.booking import Booking, BookingStatus
from ..schemas.booking import Booking as BookingSchema
from ..schemas.booking import (
    CreateBookingRequest,
    ListBookingsRequest,
    ListBookingsResponse,
    Receipt,
    ReceiptGuest,
    ReceiptHotel,
    ReceiptRoom,
)
from ..schemas.common import Money
from .availability_ledger import AvailabilityLedger, stay_dates
from .cleaning_service import CleaningService
from .hotel_service import HotelService
from .user_service import UserService

logger = logging.getLogger(__name__)


class BookingService:
    """
    Coordinates bookings with the availability ledger and room cleaning state.

    Every mutation runs under the room-number lock and commits once, so a
    booking and the dates it holds are written or released together.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = AvailabilityLedger(db)
        self.hotel_service = HotelService(db)
        self.user_service = UserService(db)
        self.cleaning_service = CleaningService(db)

    async def create_booking(self, principal: Principal, request: CreateBookingRequest) -> Booking:
        """
        Book a room-number for a date range.

        Args:
            principal: Acting user; becomes the booking's guest
            request: Booking creation request

        Returns:
            Created booking entity with status ``confirmed``

        Raises:
            AuthorizationError: If the principal may not book
            ValidationError: If the date range covers no nights
            NotFoundError: If room, room-number, hotel or guest not found
            RoomUnavailableError: If any day of the stay is already reserved
        """
        principal.require(Permission.BOOKING_CREATE, detail="Not authorized to create bookings")

        # Fails fast on an empty range before any lock is taken
        nights = stay_dates(request.date_start, request.date_end)

        async with room_number_lock(self.db, request.room_id, request.room_number):
            try:
                room = await self.hotel_service.get_room_by_id_or_raise(request.room_id)
                if room.hotel_id != request.hotel_id:
                    logger.warning(
                        "Booking creation failed - room belongs to another hotel",
                        extra={
                            "room_id": str(request.room_id),
                            "hotel_id": str(request.hotel_id),
                            "actual_hotel_id": str(room.hotel_id)
                        }
                    )
                    raise NotFoundError(
                        resource_type="room",
                        resource_id=str(request.room_id),
                        detail=f"Room '{request.room_id}' does not exist in hotel '{request.hotel_id}'"
                    )

                room_number = await self.hotel_service.get_room_number_or_raise(
                    request.room_id, request.room_number
                )
                await self.user_service.get_user_by_id_or_raise(principal.user_id)

                conflicts = await self.ledger.conflicting_dates(
                    room_number.id, request.date_start, request.date_end
                )
                if conflicts:
                    metrics_collector.record_booking_conflict()
                    logger.warning(
                        "Booking creation failed - room unavailable",
                        extra={
                            "room_id": str(request.room_id),
                            "room_number": request.room_number,
                            "date_start": request.date_start.isoformat(),
                            "date_end": request.date_end.isoformat(),
                            "conflicting_dates": [d.isoformat() for d in conflicts],
                        }
                    )
                    raise RoomUnavailableError(
                        room_id=str(request.room_id),
                        room_number=request.room_number,
                        conflicting_dates=conflicts
                    )

                booking = Booking(
                    id=uuid4(),
                    guest_id=principal.user_id,
                    hotel_id=request.hotel_id,
                    room_id=request.room_id,
                    room_number=request.room_number,
                    date_start=request.date_start,
                    date_end=request.date_end,
                    total_price_amount=request.total_price.amount,
                    total_price_currency=request.total_price.currency,
                    status=BookingStatus.CONFIRMED.value
                )
                self.db.add(booking)

                # Booking and reserved dates go out in one flush and one commit
                await self.ledger.reserve(
                    room_number.id,
                    request.date_start,
                    request.date_end,
                    booking_id=booking.id,
                    room_id=request.room_id,
                    room_number=request.room_number,
                )
                await self.db.commit()

            except Exception:
                await self.db.rollback()
                raise

        metrics_collector.record_booking_created(str(request.hotel_id))

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "guest_id": str(principal.user_id),
                "room_id": str(request.room_id),
                "room_number": request.room_number,
                "date_start": request.date_start.isoformat(),
                "date_end": request.date_end.isoformat(),
                "nights": len(nights),
            }
        )

        return booking

    async def cancel_booking(self, principal: Principal, booking_id: UUID) -> Booking:
        """
        Cancel a confirmed booking, free its dates and flag the room for cleaning.

        Args:
            principal: Acting user
            booking_id: Booking to cancel

        Returns:
            Cancelled booking entity

        Raises:
            NotFoundError: If booking not found
            AuthorizationError: If the principal is neither the guest nor allowed to cancel any booking
            InvalidStateError: If the booking is not ``confirmed``
            InconsistencyError: If the booked room-number no longer exists
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)

        principal.require_owner_or(
            booking.guest_id,
            Permission.BOOKING_CANCEL_ANY,
            detail="Not authorized to cancel this booking"
        )

        room_id = booking.room_id
        number = booking.room_number

        async with room_number_lock(self.db, room_id, number):
            try:
                # Re-read under the lock; a concurrent cancel may have won
                booking = await self._get_booking_for_update(booking_id)

                if booking.status != BookingStatus.CONFIRMED:
                    logger.warning(
                        "Booking cancellation failed - booking not confirmed",
                        extra={"booking_id": str(booking_id), "status": booking.status}
                    )
                    raise InvalidStateError(booking_id=str(booking_id), current_status=str(booking.status))

                room_number = await self.hotel_service.get_room_number(room_id, number)
                if room_number is None:
                    logger.error(
                        "Booking references a missing room number",
                        extra={"booking_id": str(booking_id), "room_id": str(room_id), "room_number": number}
                    )
                    raise InconsistencyError(
                        detail=f"Booking '{booking_id}' references room number {number} which no longer exists",
                        booking_id=str(booking_id)
                    )

                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_at = utcnow()

                released = await self.ledger.release_booking(booking.id)
                await self.cleaning_service.mark_needs_cleaning(room_id)

                await self.db.commit()

            except Exception:
                await self.db.rollback()
                raise

        metrics_collector.record_booking_cancelled()

        logger.info(
            "Booking cancelled successfully",
            extra={
                "booking_id": str(booking_id),
                "room_id": str(room_id),
                "room_number": number,
                "dates_released": released,
                "actor": str(principal.user_id),
            }
        )

        return booking

    async def get_booking(self, principal: Principal, booking_id: UUID) -> Booking:
        """
        Get a booking visible to the principal.

        Raises:
            NotFoundError: If booking not found
            AuthorizationError: If the principal is neither the guest nor allowed to view any booking
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)
        principal.require_owner_or(
            booking.guest_id,
            Permission.BOOKING_VIEW_ANY,
            detail="Not authorized to view this booking"
        )
        return booking

    async def get_receipt(self, principal: Principal, booking_id: UUID) -> Receipt:
        """
        Assemble the receipt for a booking.

        Args:
            principal: Acting user
            booking_id: Booking to build the receipt for

        Returns:
            Receipt with booking, hotel, room and guest details

        Raises:
            NotFoundError: If the booking or any entity it references is missing
            AuthorizationError: If the principal is neither the guest nor allowed to view any booking
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)
        principal.require_owner_or(
            booking.guest_id,
            Permission.BOOKING_VIEW_ANY,
            detail="Not authorized to view this receipt"
        )

        hotel = await self.hotel_service.get_hotel_by_id_or_raise(booking.hotel_id)
        room = await self.hotel_service.get_room_by_id_or_raise(booking.room_id)
        guest = await self.user_service.get_user_by_id_or_raise(booking.guest_id)

        logger.info(
            "Receipt assembled",
            extra={"booking_id": str(booking_id), "actor": str(principal.user_id)}
        )

        return Receipt(
            booking=booking_to_schema(booking),
            hotel=ReceiptHotel(
                id=str(hotel.id),
                name=hotel.name,
                address=hotel.address,
                city=hotel.city
            ),
            room=ReceiptRoom(
                id=str(room.id),
                title=room.title,
                price=Money(amount=room.price_amount, currency=room.price_currency)
            ),
            guest=ReceiptGuest(
                id=str(guest.id),
                username=guest.username,
                email=guest.email,
                phone=guest.phone
            )
        )

    async def list_bookings(self, principal: Principal, request: ListBookingsRequest) -> ListBookingsResponse:
        """
        List bookings with optional filters and cursor pagination.

        Principals without ``booking:view_any`` only see their own bookings;
        asking for someone else's is refused.

        Raises:
            AuthorizationError: If filtering on another guest without permission
        """
        guest_id = request.guest_id
        if not principal.has(Permission.BOOKING_VIEW_ANY):
            if guest_id is not None and guest_id != principal.user_id:
                raise AuthorizationError(
                    detail="Not authorized to view these bookings",
                    required_permissions=[Permission.BOOKING_VIEW_ANY.value]
                )
            guest_id = principal.user_id

        stmt = select(Booking)

        conditions = []
        if guest_id is not None:
            conditions.append(Booking.guest_id == guest_id)
        if request.hotel_id is not None:
            conditions.append(Booking.hotel_id == request.hotel_id)
        if request.status is not None:
            conditions.append(Booking.status == request.status.value)

        if request.cursor:
            try:
                conditions.append(Booking.id > UUID(request.cursor))
            except ValueError:
                logger.warning(
                    "Invalid cursor provided in booking list",
                    extra={"cursor": request.cursor}
                )

        if conditions:
            stmt = stmt.where(*conditions)

        # Order by ID for consistent pagination; fetch one extra to detect a next page
        stmt = stmt.order_by(Booking.id).limit(request.limit + 1)

        result = await self.db.execute(stmt)
        bookings = list(result.scalars())

        has_next_page = len(bookings) > request.limit
        if has_next_page:
            bookings = bookings[:-1]

        next_cursor = str(bookings[-1].id) if has_next_page and bookings else None

        logger.info(
            "Booking list completed",
            extra={
                "total_found": len(bookings),
                "has_next_page": has_next_page,
                "filters": {
                    "guest_id": str(guest_id) if guest_id else None,
                    "hotel_id": str(request.hotel_id) if request.hotel_id else None,
                    "status": request.status.value if request.status else None,
                }
            }
        )

        return ListBookingsResponse(
            items=[booking_to_schema(b) for b in bookings],
            next_cursor=next_cursor
        )

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        """Get booking by ID."""
        stmt = select(Booking).where(Booking.id == booking_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID) -> Booking:
        """Get booking by ID or raise NotFoundError."""
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id)}
            )
            raise NotFoundError(
                resource_type="booking",
                resource_id=str(booking_id)
            )
        return booking

    async def _get_booking_for_update(self, booking_id: UUID) -> Booking:
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking

    async def confirmed_bookings_for(self, room_id: UUID, number: int) -> list[Booking]:
        """Return the confirmed bookings of one room-number ordered by start date."""
        stmt = (
            select(Booking)
            .where(
                Booking.room_id == room_id,
                Booking.room_number == number,
                Booking.status == BookingStatus.CONFIRMED.value
            )
            .order_by(Booking.date_start)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())


def booking_to_schema(booking: Booking) -> BookingSchema:
    """Convert booking model to response schema."""
    return BookingSchema(
        id=str(booking.id),
        guest_id=str(booking.guest_id),
        hotel_id=str(booking.hotel_id),
        room_id=str(booking.room_id),
        room_number=booking.room_number,
        date_start=booking.date_start,
        date_end=booking.date_end,
        total_price=Money(amount=booking.total_price_amount, currency=booking.total_price_currency),
        status=BookingStatus(booking.status).value,
        created_at=booking.created_at,
        cancelled_at=booking.cancelled_at
    )


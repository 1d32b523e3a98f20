"""Booking router: create, cancel and read bookings."""

import logging
from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession, RequiredAuth
from ..core.permissions import Principal
from ..schemas.booking import (
    Booking,
    CancelBookingRequest,
    CreateBookingRequest,
    GetBookingRequest,
    ListBookingsRequest,
    ListBookingsResponse,
    Receipt,
)
from ..services.booking_service import BookingService, booking_to_schema
from ..services.idempotency_service import IdempotencyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
IDEMPOTENCY_KEY_HEADER = Header(None, alias="Idempotency-Key")


def _idempotent_body(principal: Principal, request) -> dict:
    # The acting user is part of the body so a key cannot replay another user's response
    return {"principal": str(principal.user_id), **request.model_dump(mode="json")}


@router.post("/create", response_model=Booking)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth,
    idempotency_key: Optional[str] = IDEMPOTENCY_KEY_HEADER
) -> JSONResponse:
    """
    Book a room-number for a stay.

    Retries carrying the same Idempotency-Key and body get the first
    response back instead of a second booking attempt.
    """
    booking_service = BookingService(db)

    async def operation() -> dict:
        booking = await booking_service.create_booking(principal, request)
        return booking_to_schema(booking).model_dump(mode="json")

    return await IdempotencyService(db).run(
        idempotency_key=idempotency_key,
        method="booking/create",
        request_body=_idempotent_body(principal, request),
        operation=operation
    )


@router.post("/cancel", response_model=Booking)
async def cancel_booking(
    request: CancelBookingRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth,
    idempotency_key: Optional[str] = IDEMPOTENCY_KEY_HEADER
) -> JSONResponse:
    """
    Cancel a confirmed booking.

    The booked dates become available again and the room is flagged for
    cleaning.
    """
    booking_service = BookingService(db)

    async def operation() -> dict:
        booking = await booking_service.cancel_booking(principal, request.booking_id)
        return booking_to_schema(booking).model_dump(mode="json")

    return await IdempotencyService(db).run(
        idempotency_key=idempotency_key,
        method="booking/cancel",
        request_body=_idempotent_body(principal, request),
        operation=operation
    )


@router.post("/receipt", response_model=Receipt)
async def get_receipt(
    request: GetBookingRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> Receipt:
    """Get the receipt for a booking."""
    return await BookingService(db).get_receipt(principal, request.booking_id)


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> Booking:
    """Get a booking by ID."""
    booking = await BookingService(db).get_booking(principal, request.booking_id)
    return booking_to_schema(booking)


@router.post("/list", response_model=ListBookingsResponse)
async def list_bookings(
    request: ListBookingsRequest,
    db: AsyncSession = DatabaseSession,
    principal: Principal = RequiredAuth
) -> ListBookingsResponse:
    """
    List bookings with optional filters and cursor pagination.

    Guests and workers see only their own bookings.
    """
    response = await BookingService(db).list_bookings(principal, request)

    logger.info(
        "Bookings listed",
        extra={"count": len(response.items), "actor": str(principal.user_id)}
    )

    return response

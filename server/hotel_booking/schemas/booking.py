"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Money, PaginatedResponse


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CreateBookingRequest(BaseModel):
    """Request schema for creating a booking."""

    hotel_id: UUID = Field(..., description="Hotel the room belongs to")
    room_id: UUID = Field(..., description="Room type to book")
    room_number: int = Field(..., gt=0, description="Physical room-number within the room type")
    date_start: date = Field(..., description="First night of the stay")
    date_end: date = Field(..., description="Last day of the stay")
    total_price: Money = Field(..., description="Total price of the stay")

    @model_validator(mode="after")
    def check_dates_ordered(self) -> "CreateBookingRequest":
        if self.date_start > self.date_end:
            raise ValueError("date_start must not be after date_end")
        return self


class CancelBookingRequest(BaseModel):
    """Request schema for cancelling a booking."""

    booking_id: UUID = Field(..., description="Booking to cancel")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking or its receipt."""

    booking_id: UUID = Field(..., description="Booking to retrieve")


class ListBookingsRequest(BaseModel):
    """Request schema for listing bookings."""

    hotel_id: Optional[UUID] = Field(None, description="Only bookings at this hotel")
    guest_id: Optional[UUID] = Field(None, description="Only bookings made by this guest")
    status: Optional[BookingStatus] = Field(None, description="Only bookings in this status")
    cursor: Optional[str] = Field(None, description="Cursor returned by the previous page")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of bookings to return")


class Booking(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique booking ID")
    guest_id: str = Field(..., description="Guest who made the booking")
    hotel_id: str = Field(..., description="Hotel ID")
    room_id: str = Field(..., description="Room type ID")
    room_number: int = Field(..., description="Booked room-number")
    date_start: date = Field(..., description="First day of the stay")
    date_end: date = Field(..., description="Last day of the stay")
    total_price: Money = Field(..., description="Total price of the stay")
    status: BookingStatus = Field(..., description="Booking status")
    created_at: datetime = Field(..., description="Booking creation time (ISO 8601)")
    cancelled_at: Optional[datetime] = Field(None, description="Cancellation time, if cancelled")


class ListBookingsResponse(PaginatedResponse):
    """Page of bookings."""

    items: List[Booking] = Field(default_factory=list, description="Bookings on this page")


class ReceiptHotel(BaseModel):
    """Hotel fields shown on a receipt."""

    id: str
    name: str
    address: str
    city: str


class ReceiptRoom(BaseModel):
    """Room fields shown on a receipt."""

    id: str
    title: str
    price: Money


class ReceiptGuest(BaseModel):
    """Guest fields shown on a receipt."""

    id: str
    username: str
    email: str
    phone: Optional[str] = None


class Receipt(BaseModel):
    """Read-only aggregate of a booking and everything it references."""

    booking: Booking
    hotel: ReceiptHotel
    room: ReceiptRoom
    guest: ReceiptGuest

"""Hotel, room, availability and housekeeping schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.permissions import Role
from ..models.worker import WorkerRole
from .booking import Booking
from .common import Money


class CreateHotelRequest(BaseModel):
    """Request schema for creating a hotel."""

    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("Hotel", min_length=1, max_length=64)
    city: str = Field(..., min_length=1, max_length=128)
    address: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    cheapest_price: Money = Field(default_factory=lambda: Money(amount=0))
    featured: bool = False


class CreateRoomRequest(BaseModel):
    """Request schema for creating a room type with its room-numbers."""

    hotel_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    price: Money
    max_people: int = Field(2, ge=1, le=20)
    description: Optional[str] = None
    room_numbers: List[int] = Field(default_factory=list, description="Physical room-numbers")

    @field_validator("room_numbers")
    @classmethod
    def validate_room_numbers(cls, v: List[int]) -> List[int]:
        if any(n <= 0 for n in v):
            raise ValueError("Room numbers must be positive")
        if len(set(v)) != len(v):
            raise ValueError("Room numbers must be unique within a room")
        return v


class CreateUserRequest(BaseModel):
    """Request schema for creating a user."""

    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=64)
    city: Optional[str] = Field(None, max_length=64)
    role: Role = Role.GUEST


class CreateWorkerRequest(BaseModel):
    """Request schema for creating a worker."""

    name: str = Field(..., min_length=1, max_length=128)
    hotel_id: UUID
    user_id: Optional[UUID] = None
    role: WorkerRole
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=32)


class GetRoomRequest(BaseModel):
    """Request schema for getting a room."""

    room_id: UUID = Field(..., description="Room to retrieve")


class CheckAvailabilityRequest(BaseModel):
    """Request schema for an availability check."""

    room_id: UUID
    room_number: int = Field(..., gt=0)
    date_start: date
    date_end: date

    @model_validator(mode="after")
    def check_dates_ordered(self) -> "CheckAvailabilityRequest":
        if self.date_start > self.date_end:
            raise ValueError("date_start must not be after date_end")
        return self


class CleanRoomRequest(BaseModel):
    """Request schema for marking a room as cleaned."""

    room_id: UUID = Field(..., description="Room that was cleaned")
    worker_id: UUID = Field(..., description="Worker who cleaned it")


class RoomNumber(BaseModel):
    """Room-number with its reserved calendar days."""

    number: int
    reserved_dates: List[date] = Field(default_factory=list)


class CleaningRecord(BaseModel):
    """One cleaning history entry."""

    worker_id: str
    cleaned_at: datetime


class Room(BaseModel):
    """Room response schema including housekeeping state."""

    id: str
    hotel_id: str
    title: str
    price: Money
    max_people: int
    description: Optional[str] = None
    is_cleaned: bool
    needs_cleaning: bool
    last_cleaned_at: Optional[datetime] = None
    room_numbers: List[RoomNumber] = Field(default_factory=list)
    cleaning_history: List[CleaningRecord] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    """Result of an availability check."""

    room_id: str
    room_number: int
    date_start: date
    date_end: date
    available: bool
    conflicting_dates: List[date] = Field(default_factory=list)


class RoomBookingsRequest(BaseModel):
    """Request schema for the confirmed bookings of one room-number."""

    room_id: UUID
    room_number: int = Field(..., gt=0)


class RoomBookingsResponse(BaseModel):
    """Confirmed bookings of a room-number, earliest stay first."""

    room_id: str
    room_number: int
    bookings: List[Booking] = Field(default_factory=list)


class WorkerCleaningRequest(BaseModel):
    """Request schema for a worker's cleaning history."""

    worker_id: UUID = Field(..., description="Worker whose cleanings to list")


class CleanedRoom(BaseModel):
    """A room a worker is credited with cleaning."""

    room_id: str
    cleaned_at: datetime


class WorkerCleaningResponse(BaseModel):
    """Every cleaning a worker is credited with, oldest first."""

    worker_id: str
    cleaned_rooms: List[CleanedRoom] = Field(default_factory=list)

"""Service layer package."""

from .availability_ledger import AvailabilityLedger
from .booking_service import BookingService
from .cleaning_service import CleaningService
from .hotel_service import HotelService
from .idempotency_service import IdempotencyService
from .user_service import UserService

__all__ = [
    "AvailabilityLedger",
    "BookingService",
    "CleaningService",
    "HotelService",
    "IdempotencyService",
    "UserService",
]

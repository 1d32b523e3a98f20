"""Models module exporting all database models."""

from .booking import Booking, BookingStatus
from .hotel import Hotel
from .idempotency import IdempotencyRecord
from .room import CleaningRecord, ReservedDate, Room, RoomNumber
from .user import User
from .worker import Worker, WorkerRole

__all__ = [
    # Catalog entities
    "Hotel",
    "Room",
    "RoomNumber",

    # Availability ledger
    "ReservedDate",

    # Booking entities
    "Booking",
    "BookingStatus",

    # People
    "User",
    "Worker",
    "WorkerRole",

    # Housekeeping
    "CleaningRecord",

    # Idempotency entity
    "IdempotencyRecord",
]

"""Booking model definition."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base, utcnow


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(Base):
    """
    Booking entity: one guest's stay on one room-number.

    Hotel, room and guest are referenced by ID only. Bookings change status
    but are never deleted by the booking flow.
    """

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # References
    guest_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    room_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    room_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Stay
    date_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    date_end: Mapped[date] = mapped_column(Date, nullable=False)

    # Price (stored as minor units, e.g., cents)
    total_price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.CONFIRMED.value,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Constraints
    __table_args__ = (
        CheckConstraint("date_start <= date_end", name="ck_booking_dates_ordered"),
        CheckConstraint("total_price_amount >= 0", name="ck_booking_total_price_non_negative"),
        CheckConstraint("length(total_price_currency) = 3", name="ck_booking_currency_length"),
        CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name="ck_booking_status_valid"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, room_id={self.room_id}, room_number={self.room_number}, "
            f"dates={self.date_start}..{self.date_end}, status={self.status})>"
        )

"""Room, room-number, reserved-date and cleaning record model definitions."""

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .hotel import Hotel


class Room(Base):
    """
    Room type within a hotel.

    Carries the housekeeping state for the room: ``is_cleaned``,
    ``needs_cleaning`` and ``last_cleaned_at``. The cleaning history lives
    in ``cleaning_records``.
    """

    __tablename__ = "rooms"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign key to hotel
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Room details
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_people: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    # Nightly price (stored as minor units, e.g., cents)
    price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Cleaning state
    is_cleaned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    needs_cleaning: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_cleaned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint("length(title) > 0", name="ck_room_title_not_empty"),
        CheckConstraint("max_people > 0", name="ck_room_max_people_positive"),
        CheckConstraint("price_amount >= 0", name="ck_room_price_amount_non_negative"),
        CheckConstraint("length(price_currency) = 3", name="ck_room_price_currency_length"),
    )

    # Relationships
    hotel: Mapped["Hotel"] = relationship("Hotel", back_populates="rooms")
    room_numbers: Mapped[list["RoomNumber"]] = relationship(
        "RoomNumber",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="RoomNumber.number",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return (
            f"<Room(id={self.id}, hotel_id={self.hotel_id}, title='{self.title}', "
            f"is_cleaned={self.is_cleaned}, needs_cleaning={self.needs_cleaning})>"
        )


class RoomNumber(Base):
    """One physically bookable unit of a room type."""

    __tablename__ = "room_numbers"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign key to room
    room_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    number: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint("number > 0", name="ck_room_number_positive"),
        UniqueConstraint("room_id", "number", name="uq_room_number_room_id_number"),
    )

    # Relationships
    room: Mapped["Room"] = relationship("Room", back_populates="room_numbers")

    def __repr__(self) -> str:
        return f"<RoomNumber(id={self.id}, room_id={self.room_id}, number={self.number})>"


class ReservedDate(Base):
    """
    One calendar day on which a room-number is taken.

    The rows for a room-number form its reserved-date set. The unique
    constraint on ``(room_number_id, day)`` makes the database refuse a
    second claim on the same night.
    """

    __tablename__ = "reserved_dates"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    room_number_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("room_numbers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    day: Mapped[date] = mapped_column(Date, nullable=False)

    # Booking that claimed the day
    booking_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Constraints
    __table_args__ = (
        UniqueConstraint("room_number_id", "day", name="uq_reserved_date_room_number_day"),
    )

    def __repr__(self) -> str:
        return f"<ReservedDate(room_number_id={self.room_number_id}, day={self.day}, booking_id={self.booking_id})>"


class CleaningRecord(Base):
    """Append-only entry recording that a worker cleaned a room."""

    __tablename__ = "cleaning_records"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    room_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    worker_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    cleaned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<CleaningRecord(room_id={self.room_id}, worker_id={self.worker_id}, cleaned_at={self.cleaned_at})>"

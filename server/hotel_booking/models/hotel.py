"""Hotel model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .room import Room


class Hotel(Base):
    """Hotel entity owning a set of room types."""

    __tablename__ = "hotels"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Hotel details
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False, default="Hotel")
    city: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Price information (stored as minor units, e.g., cents)
    cheapest_price_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_hotel_name_not_empty"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_hotel_rating_range"),
        CheckConstraint("cheapest_price_amount >= 0", name="ck_hotel_cheapest_price_non_negative"),
    )

    # Relationships
    rooms: Mapped[list["Room"]] = relationship(
        "Room",
        back_populates="hotel",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Hotel(id={self.id}, name='{self.name}', city='{self.city}')>"

"""Worker model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base, utcnow


class WorkerRole(str, Enum):
    """Job role of a hotel worker."""
    HOUSEKEEPER = "Housekeeper"
    RECEPTIONIST = "Receptionist"
    MANAGER = "Manager"
    MAINTENANCE = "Maintenance"
    SECURITY = "Security"


class Worker(Base):
    """Hotel staff member who can be credited with cleaning rooms."""

    __tablename__ = "workers"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(128), nullable=False)

    # Login account, if the worker has one
    user_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    role: Mapped[WorkerRole] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_worker_name_not_empty"),
        CheckConstraint(
            "role IN ('Housekeeper', 'Receptionist', 'Manager', 'Maintenance', 'Security')",
            name="ck_worker_role_valid"
        ),
    )

    def __repr__(self) -> str:
        return f"<Worker(id={self.id}, name='{self.name}', role={self.role}, hotel_id={self.hotel_id})>"

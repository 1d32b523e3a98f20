"""Room cleaning state service."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import utcnow
from ..core.observability import metrics_collector
from ..core.permissions import Permission, Principal
from ..models.room import CleaningRecord, Room
from .hotel_service import HotelService
from .user_service import UserService

logger = logging.getLogger(__name__)


class CleaningService:
    """
    Housekeeping transitions for rooms.

    A room is either cleaned (``is_cleaned`` true, ``needs_cleaning`` false)
    or waiting for housekeeping (the reverse). Cancellations move it to the
    latter; a worker cleaning it moves it back and appends a history entry.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.hotel_service = HotelService(db)
        self.user_service = UserService(db)

    async def mark_cleaned(self, principal: Principal, room_id: UUID, worker_id: UUID) -> Room:
        """
        Record that a worker cleaned a room.

        Cleaning an already clean room is allowed and still appends a
        history entry.

        Args:
            principal: Acting user
            room_id: Room that was cleaned
            worker_id: Worker credited with the cleaning

        Returns:
            Updated room entity

        Raises:
            AuthorizationError: If the principal may not record cleaning
            NotFoundError: If room or worker not found
        """
        principal.require(Permission.ROOM_CLEAN, detail="Not authorized to mark rooms as cleaned")

        worker = await self.user_service.get_worker_by_id_or_raise(worker_id)
        room = await self.hotel_service.get_room_by_id_or_raise(room_id, refresh=True)

        now = utcnow()
        room.is_cleaned = True
        room.needs_cleaning = False
        room.last_cleaned_at = now
        self.db.add(CleaningRecord(room_id=room.id, worker_id=worker.id, cleaned_at=now))

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        metrics_collector.record_room_cleaned()

        logger.info(
            "Room marked as cleaned",
            extra={
                "room_id": str(room_id),
                "worker_id": str(worker_id),
                "cleaned_at": now.isoformat(),
                "actor": str(principal.user_id)
            }
        )

        return room

    async def mark_needs_cleaning(self, room_id: UUID) -> Room:
        """
        Flag a room for housekeeping.

        Part of the cancellation transaction: the change is staged on the
        session and committed by the caller.

        Raises:
            NotFoundError: If room not found
        """
        room = await self.hotel_service.get_room_by_id_or_raise(room_id)
        room.is_cleaned = False
        room.needs_cleaning = True

        logger.debug("Room flagged for cleaning", extra={"room_id": str(room_id)})

        return room

    async def cleaning_history(self, room_id: UUID) -> list[CleaningRecord]:
        """Return a room's cleaning history, oldest first."""
        stmt = (
            select(CleaningRecord)
            .where(CleaningRecord.room_id == room_id)
            .order_by(CleaningRecord.cleaned_at, CleaningRecord.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def cleaned_rooms(self, worker_id: UUID) -> list[CleaningRecord]:
        """Return every cleaning a worker is credited with, oldest first."""
        await self.user_service.get_worker_by_id_or_raise(worker_id)

        stmt = (
            select(CleaningRecord)
            .where(CleaningRecord.worker_id == worker_id)
            .order_by(CleaningRecord.cleaned_at, CleaningRecord.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

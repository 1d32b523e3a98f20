"""Availability ledger: the reserved-date set of each room-number."""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import RoomUnavailableError, ValidationError
from ..models.room import ReservedDate

logger = logging.getLogger(__name__)


def normalize_day(value: date | datetime) -> date:
    """Reduce a date or timestamp to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def stay_dates(start: date | datetime, end: date | datetime, include_end: bool | None = None) -> list[date]:
    """
    Enumerate the calendar days a stay occupies.

    With ``include_end`` (the default unless ``checkout_day_free`` is set)
    the range is ``[start, end]``; otherwise it is ``[start, end)`` and the
    checkout day stays bookable.

    Raises:
        ValidationError: If the range is empty
    """
    if include_end is None:
        include_end = not settings.checkout_day_free

    first = normalize_day(start)
    last = normalize_day(end)
    if not include_end:
        last -= timedelta(days=1)

    if first > last:
        raise ValidationError(
            detail=f"Invalid stay: {normalize_day(start).isoformat()} to {normalize_day(end).isoformat()} covers no nights",
            violations=[{"path": "date_end", "message": "must be after date_start"}],
        )

    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


class AvailabilityLedger:
    """
    Reads and mutates reserved-date sets.

    The ledger never commits; callers run it inside their own transaction
    and hold the room-number lock around check and reserve.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reserved_dates(self, room_number_id: UUID) -> set[date]:
        """Return the reserved-date set of a room-number."""
        stmt = select(ReservedDate.day).where(ReservedDate.room_number_id == room_number_id)
        result = await self.db.execute(stmt)
        return set(result.scalars())

    async def conflicting_dates(
        self,
        room_number_id: UUID,
        start: date | datetime,
        end: date | datetime,
        include_end: bool | None = None,
    ) -> list[date]:
        """Return the reserved days inside the stay, in calendar order."""
        days = stay_dates(start, end, include_end)
        stmt = (
            select(ReservedDate.day)
            .where(
                ReservedDate.room_number_id == room_number_id,
                ReservedDate.day.in_(days)
            )
            .order_by(ReservedDate.day)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def check(
        self,
        room_number_id: UUID,
        start: date | datetime,
        end: date | datetime,
        include_end: bool | None = None,
    ) -> bool:
        """Return True when every day of the stay is free."""
        conflicts = await self.conflicting_dates(room_number_id, start, end, include_end)
        return not conflicts

    async def reserve(
        self,
        room_number_id: UUID,
        start: date | datetime,
        end: date | datetime,
        booking_id: UUID | None = None,
        include_end: bool | None = None,
        *,
        room_id: UUID | None = None,
        room_number: int | None = None,
    ) -> list[date]:
        """
        Add every day of the stay to the reserved-date set.

        The rows are flushed immediately so a duplicate claim surfaces here
        rather than at commit.

        Returns:
            The days reserved

        Raises:
            RoomUnavailableError: If storage already holds one of the days
        """
        days = stay_dates(start, end, include_end)
        self.db.add_all(
            ReservedDate(room_number_id=room_number_id, day=day, booking_id=booking_id)
            for day in days
        )

        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Reserved-date uniqueness violated",
                extra={
                    "room_number_id": str(room_number_id),
                    "date_start": days[0].isoformat(),
                    "date_end": days[-1].isoformat(),
                    "error": str(e.orig),
                }
            )
            raise RoomUnavailableError(
                room_id=str(room_id or room_number_id),
                room_number=room_number or 0,
                detail="Room is not available for the selected dates",
            ) from e

        logger.debug(
            "Reserved dates",
            extra={
                "room_number_id": str(room_number_id),
                "booking_id": str(booking_id) if booking_id else None,
                "nights": len(days),
            }
        )
        return days

    async def release(
        self,
        room_number_id: UUID,
        start: date | datetime,
        end: date | datetime,
        include_end: bool | None = None,
    ) -> int:
        """
        Remove every day of the stay from the reserved-date set.

        Days that are not reserved are skipped, so releasing twice is the
        same as releasing once.

        Returns:
            Number of days actually removed
        """
        days = stay_dates(start, end, include_end)
        return await self.release_days(room_number_id, days)

    async def release_booking(self, booking_id: UUID) -> int:
        """
        Remove the days a booking claimed, exactly as they were reserved.

        Independent of the current stay-range setting, so a booking made
        under one setting is fully released under the other.

        Returns:
            Number of days actually removed
        """
        stmt = delete(ReservedDate).where(ReservedDate.booking_id == booking_id)
        result = await self.db.execute(stmt)

        logger.debug(
            "Released booking dates",
            extra={"booking_id": str(booking_id), "removed": result.rowcount}
        )
        return result.rowcount

    async def release_days(self, room_number_id: UUID, days: Iterable[date]) -> int:
        """Remove specific days from the reserved-date set."""
        days = [normalize_day(day) for day in days]
        if not days:
            return 0

        stmt = delete(ReservedDate).where(
            ReservedDate.room_number_id == room_number_id,
            ReservedDate.day.in_(days)
        )
        result = await self.db.execute(stmt)

        logger.debug(
            "Released dates",
            extra={
                "room_number_id": str(room_number_id),
                "requested": len(days),
                "removed": result.rowcount,
            }
        )
        return result.rowcount

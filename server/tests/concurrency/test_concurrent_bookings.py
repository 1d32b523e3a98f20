"""Concurrency tests for booking operations."""

import asyncio
from datetime import date

import pytest

from hotel_booking.core.exceptions import InvalidStateError, RoomUnavailableError
from hotel_booking.core.locks import room_number_lock_key, room_number_locks
from hotel_booking.core.permissions import Principal, Role
from hotel_booking.models.booking import BookingStatus
from hotel_booking.services.availability_ledger import AvailabilityLedger, stay_dates
from hotel_booking.services.booking_service import BookingService
from hotel_booking.services.hotel_service import HotelService

from conftest import booking_request, seed_catalog


async def _seed(session_factory) -> dict:
    async with session_factory() as session:
        return await seed_catalog(session)


async def _create(session_factory, principal, request):
    """Create a booking in its own session, as a separate request would."""
    async with session_factory() as session:
        try:
            return await BookingService(session).create_booking(principal, request)
        except RoomUnavailableError as e:
            return e


@pytest.mark.asyncio
async def test_concurrent_create_race_has_one_winner(session_factory):
    catalog = await _seed(session_factory)
    guest_a = Principal.from_roles(catalog["guest_id"], [Role.GUEST])
    guest_b = Principal.from_roles(catalog["other_guest_id"], [Role.GUEST])
    request = booking_request(catalog)

    results = await asyncio.gather(
        _create(session_factory, guest_a, request),
        _create(session_factory, guest_b, request),
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, RoomUnavailableError)]
    assert len(successes) == 1
    assert len(conflicts) == 1
    assert successes[0].status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_many_concurrent_creates_never_overlap(session_factory):
    catalog = await _seed(session_factory)
    guests = [
        Principal.from_roles(catalog["guest_id"], [Role.GUEST]),
        Principal.from_roles(catalog["other_guest_id"], [Role.GUEST]),
    ]

    # Staggered three-day stays: neighbours overlap, every other one is disjoint
    requests = [
        booking_request(catalog, start=date(2024, 6, 1 + offset), end=date(2024, 6, 3 + offset))
        for offset in range(10)
    ]

    results = await asyncio.gather(*[
        _create(session_factory, guests[i % 2], request)
        for i, request in enumerate(requests)
    ])

    successes = [r for r in results if not isinstance(r, Exception)]
    assert successes

    claimed = [set(stay_dates(b.date_start, b.date_end)) for b in successes]
    for i, first in enumerate(claimed):
        for second in claimed[i + 1:]:
            assert not first & second

    async with session_factory() as session:
        room_number = await HotelService(session).get_room_number_or_raise(catalog["room_id"], 101)
        ledger_days = await AvailabilityLedger(session).reserved_dates(room_number.id)

    assert ledger_days == set().union(*claimed)


@pytest.mark.asyncio
async def test_different_room_numbers_book_in_parallel(session_factory):
    catalog = await _seed(session_factory)
    guest = Principal.from_roles(catalog["guest_id"], [Role.GUEST])

    results = await asyncio.gather(
        _create(session_factory, guest, booking_request(catalog, room_number=101)),
        _create(session_factory, guest, booking_request(catalog, room_number=102)),
    )

    assert all(not isinstance(r, Exception) for r in results)
    assert {r.room_number for r in results} == {101, 102}


@pytest.mark.asyncio
async def test_concurrent_cancels_succeed_once(session_factory):
    catalog = await _seed(session_factory)
    guest = Principal.from_roles(catalog["guest_id"], [Role.GUEST])
    booking = await _create(session_factory, guest, booking_request(catalog))
    booking_id = booking.id

    async def cancel():
        async with session_factory() as session:
            try:
                return await BookingService(session).cancel_booking(guest, booking_id)
            except InvalidStateError as e:
                return e

    results = await asyncio.gather(cancel(), cancel())

    assert len([r for r in results if isinstance(r, InvalidStateError)]) == 1
    assert len([r for r in results if not isinstance(r, Exception)]) == 1


@pytest.mark.asyncio
async def test_storage_rejects_claim_that_skipped_the_check(session_factory):
    """A writer that bypasses the lock and check is still stopped by the unique constraint."""
    catalog = await _seed(session_factory)

    async with session_factory() as session:
        room_number = await HotelService(session).get_room_number_or_raise(catalog["room_id"], 101)
        room_number_id = room_number.id
        await AvailabilityLedger(session).reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
        await session.commit()

    async with session_factory() as session:
        with pytest.raises(RoomUnavailableError):
            await AvailabilityLedger(session).reserve(
                room_number_id, date(2024, 6, 2), date(2024, 6, 2), room_number=101
            )


@pytest.mark.asyncio
async def test_lock_registry_drops_idle_locks(session_factory):
    catalog = await _seed(session_factory)
    guest = Principal.from_roles(catalog["guest_id"], [Role.GUEST])

    await _create(session_factory, guest, booking_request(catalog))

    key = room_number_lock_key(catalog["room_id"], 101)
    assert key not in room_number_locks._locks

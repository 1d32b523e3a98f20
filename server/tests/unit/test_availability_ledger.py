"""Unit tests for stay ranges and the availability ledger."""

from datetime import date, datetime

import pytest
import pytest_asyncio

from hotel_booking.core.exceptions import RoomUnavailableError, ValidationError
from hotel_booking.services.availability_ledger import AvailabilityLedger, normalize_day, stay_dates
from hotel_booking.services.booking_service import BookingService
from hotel_booking.services.hotel_service import HotelService


@pytest_asyncio.fixture
async def room_number_id(test_session, catalog):
    room_number = await HotelService(test_session).get_room_number_or_raise(catalog["room_id"], 101)
    return room_number.id


def test_stay_dates_inclusive_by_default():
    days = stay_dates(date(2024, 6, 1), date(2024, 6, 3))

    assert days == [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)]


def test_stay_dates_half_open_leaves_checkout_day_free():
    days = stay_dates(date(2024, 6, 1), date(2024, 6, 3), include_end=False)

    assert days == [date(2024, 6, 1), date(2024, 6, 2)]


def test_stay_dates_single_day_inclusive():
    assert stay_dates(date(2024, 6, 1), date(2024, 6, 1)) == [date(2024, 6, 1)]


def test_stay_dates_empty_half_open_range_rejected():
    with pytest.raises(ValidationError) as exc_info:
        stay_dates(date(2024, 6, 1), date(2024, 6, 1), include_end=False)

    assert exc_info.value.status_code == 400


def test_stay_dates_reversed_range_rejected():
    with pytest.raises(ValidationError):
        stay_dates(date(2024, 6, 3), date(2024, 6, 1))


def test_stay_dates_crosses_month_boundary():
    days = stay_dates(date(2024, 2, 28), date(2024, 3, 1))

    assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_normalize_day_drops_time_of_day():
    assert normalize_day(datetime(2024, 6, 1, 23, 59)) == date(2024, 6, 1)
    assert normalize_day(date(2024, 6, 1)) == date(2024, 6, 1)


@pytest.mark.asyncio
async def test_reserve_then_check(test_session, room_number_id):
    ledger = AvailabilityLedger(test_session)

    assert await ledger.check(room_number_id, date(2024, 6, 1), date(2024, 6, 3))

    reserved = await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
    await test_session.commit()

    assert reserved == [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)]
    assert await ledger.reserved_dates(room_number_id) == set(reserved)
    assert not await ledger.check(room_number_id, date(2024, 6, 3), date(2024, 6, 5))
    assert await ledger.check(room_number_id, date(2024, 6, 4), date(2024, 6, 5))


@pytest.mark.asyncio
async def test_conflicting_dates_are_sorted_overlap(test_session, room_number_id):
    ledger = AvailabilityLedger(test_session)
    await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
    await test_session.commit()

    conflicts = await ledger.conflicting_dates(room_number_id, date(2024, 6, 2), date(2024, 6, 4))

    assert conflicts == [date(2024, 6, 2), date(2024, 6, 3)]


@pytest.mark.asyncio
async def test_room_numbers_have_independent_sets(test_session, catalog, room_number_id):
    other = await HotelService(test_session).get_room_number_or_raise(catalog["room_id"], 102)
    ledger = AvailabilityLedger(test_session)

    await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
    await test_session.commit()

    assert await ledger.check(other.id, date(2024, 6, 1), date(2024, 6, 3))


@pytest.mark.asyncio
async def test_duplicate_reservation_rejected_by_storage(test_session, room_number_id):
    """The unique constraint catches a claim that skipped the check."""
    ledger = AvailabilityLedger(test_session)
    await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
    await test_session.commit()

    with pytest.raises(RoomUnavailableError) as exc_info:
        await ledger.reserve(room_number_id, date(2024, 6, 3), date(2024, 6, 4), room_number=101)

    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "ROOM_UNAVAILABLE"

    # The failed claim left nothing behind
    assert await ledger.reserved_dates(room_number_id) == {
        date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)
    }


@pytest.mark.asyncio
async def test_release_removes_range(test_session, room_number_id):
    ledger = AvailabilityLedger(test_session)
    await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 5))
    await test_session.commit()

    removed = await ledger.release(room_number_id, date(2024, 6, 2), date(2024, 6, 3))
    await test_session.commit()

    assert removed == 2
    assert await ledger.reserved_dates(room_number_id) == {
        date(2024, 6, 1), date(2024, 6, 4), date(2024, 6, 5)
    }


@pytest.mark.asyncio
async def test_release_is_idempotent(test_session, room_number_id):
    ledger = AvailabilityLedger(test_session)
    await ledger.reserve(room_number_id, date(2024, 6, 1), date(2024, 6, 3))
    await test_session.commit()

    assert await ledger.release(room_number_id, date(2024, 6, 1), date(2024, 6, 3)) == 3
    after_first = await ledger.reserved_dates(room_number_id)

    assert await ledger.release(room_number_id, date(2024, 6, 1), date(2024, 6, 3)) == 0
    assert await ledger.reserved_dates(room_number_id) == after_first == set()


@pytest.mark.asyncio
async def test_release_of_unreserved_range_is_noop(test_session, room_number_id):
    ledger = AvailabilityLedger(test_session)

    assert await ledger.release(room_number_id, date(2024, 7, 1), date(2024, 7, 2)) == 0
    assert await ledger.release_days(room_number_id, []) == 0


@pytest.mark.asyncio
async def test_release_booking_removes_only_its_days(test_session, principals, room_number_id, make_booking_request):
    bookings = BookingService(test_session)
    await bookings.create_booking(principals["guest"], make_booking_request())
    dropped = await bookings.create_booking(
        principals["other_guest"],
        make_booking_request(start=date(2024, 6, 10), end=date(2024, 6, 11))
    )
    dropped_id = dropped.id

    ledger = AvailabilityLedger(test_session)
    removed = await ledger.release_booking(dropped_id)

    assert removed == 2
    assert await ledger.reserved_dates(room_number_id) == {
        date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)
    }
    assert await ledger.release_booking(dropped_id) == 0

"""Unit tests for room housekeeping state."""

from uuid import uuid4

import pytest

from hotel_booking.core.exceptions import AuthorizationError, NotFoundError
from hotel_booking.services.booking_service import BookingService
from hotel_booking.services.cleaning_service import CleaningService


@pytest.mark.asyncio
async def test_new_room_starts_cleaned(test_session, catalog):
    room = await CleaningService(test_session).hotel_service.get_room_by_id_or_raise(catalog["room_id"])

    assert room.is_cleaned is True
    assert room.needs_cleaning is False
    assert room.last_cleaned_at is None


@pytest.mark.asyncio
async def test_cancel_then_clean_cycle(test_session, catalog, principals, make_booking_request):
    bookings = BookingService(test_session)
    cleaning = CleaningService(test_session)

    booking = await bookings.create_booking(principals["guest"], make_booking_request())
    await bookings.cancel_booking(principals["guest"], booking.id)

    room = await cleaning.hotel_service.get_room_by_id_or_raise(catalog["room_id"], refresh=True)
    assert room.needs_cleaning is True
    assert room.is_cleaned is False

    room = await cleaning.mark_cleaned(principals["worker"], catalog["room_id"], catalog["worker_id"])

    assert room.is_cleaned is True
    assert room.needs_cleaning is False
    assert room.last_cleaned_at is not None


@pytest.mark.asyncio
async def test_every_cleaning_appends_history(test_session, catalog, principals):
    cleaning = CleaningService(test_session)

    await cleaning.mark_cleaned(principals["worker"], catalog["room_id"], catalog["worker_id"])
    await cleaning.mark_cleaned(principals["moderator"], catalog["room_id"], catalog["worker_id"])

    history = await cleaning.cleaning_history(catalog["room_id"])
    assert len(history) == 2
    assert all(record.worker_id == catalog["worker_id"] for record in history)
    assert history[0].cleaned_at <= history[1].cleaned_at

    credited = await cleaning.cleaned_rooms(catalog["worker_id"])
    assert {record.room_id for record in credited} == {catalog["room_id"]}


@pytest.mark.asyncio
async def test_mark_needs_cleaning_is_not_committed(test_session, catalog):
    cleaning = CleaningService(test_session)

    room = await cleaning.mark_needs_cleaning(catalog["room_id"])
    assert room.needs_cleaning is True

    await test_session.rollback()

    room = await cleaning.hotel_service.get_room_by_id_or_raise(catalog["room_id"], refresh=True)
    assert room.needs_cleaning is False
    assert room.is_cleaned is True


@pytest.mark.asyncio
async def test_guest_cannot_mark_cleaned(test_session, catalog, principals):
    with pytest.raises(AuthorizationError):
        await CleaningService(test_session).mark_cleaned(
            principals["guest"], catalog["room_id"], catalog["worker_id"]
        )


@pytest.mark.asyncio
async def test_mark_cleaned_unknown_worker(test_session, catalog, principals):
    with pytest.raises(NotFoundError):
        await CleaningService(test_session).mark_cleaned(principals["admin"], catalog["room_id"], uuid4())


@pytest.mark.asyncio
async def test_mark_cleaned_unknown_room(test_session, catalog, principals):
    with pytest.raises(NotFoundError):
        await CleaningService(test_session).mark_cleaned(principals["admin"], uuid4(), catalog["worker_id"])


@pytest.mark.asyncio
async def test_mark_needs_cleaning_unknown_room(test_session, catalog):
    with pytest.raises(NotFoundError):
        await CleaningService(test_session).mark_needs_cleaning(uuid4())


@pytest.mark.asyncio
async def test_cleaned_rooms_unknown_worker(test_session):
    with pytest.raises(NotFoundError):
        await CleaningService(test_session).cleaned_rooms(uuid4())

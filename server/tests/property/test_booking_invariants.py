"""Property-based tests for booking system invariants."""

import asyncio
from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hotel_booking.core.database import Base
from hotel_booking.core.exceptions import InvalidStateError, RoomUnavailableError
from hotel_booking.core.permissions import Principal, Role
from hotel_booking.models.booking import BookingStatus
from hotel_booking.services.availability_ledger import AvailabilityLedger, stay_dates
from hotel_booking.services.booking_service import BookingService
from hotel_booking.services.hotel_service import HotelService

from conftest import booking_request, seed_catalog

BASE_DAY = date(2024, 6, 1)

# Stays within a four-week window so generated ranges overlap often
stays = st.tuples(
    st.integers(min_value=0, max_value=27),
    st.integers(min_value=0, max_value=6),
).map(lambda t: (BASE_DAY + timedelta(days=t[0]), BASE_DAY + timedelta(days=t[0] + t[1])))

# ("create", stay, guest index) or ("cancel", booking index, guest index)
operations = st.lists(
    st.one_of(
        st.tuples(st.just("create"), stays, st.integers(min_value=0, max_value=1)),
        st.tuples(st.just("cancel"), st.integers(min_value=0, max_value=20), st.integers(min_value=0, max_value=1)),
    ),
    min_size=1,
    max_size=15,
)


async def _with_seeded_session(scenario):
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
        async with factory() as session:
            catalog = await seed_catalog(session)
            await scenario(session, catalog)
    finally:
        await engine.dispose()


def _principal(catalog, index):
    key = "guest_id" if index == 0 else "other_guest_id"
    return Principal.from_roles(catalog[key], [Role.GUEST])


@settings(max_examples=30, deadline=None)
@given(ops=operations)
def test_confirmed_stays_never_overlap(ops):
    """After any sequence of creates and cancels, confirmed stays on a room-number are disjoint."""

    async def scenario(session, catalog):
        service = BookingService(session)
        created_ids = []

        for op in ops:
            if op[0] == "create":
                (start, end), who = op[1], op[2]
                try:
                    booking = await service.create_booking(
                        _principal(catalog, who),
                        booking_request(catalog, start=start, end=end)
                    )
                    created_ids.append((booking.id, who))
                except RoomUnavailableError:
                    pass
            elif created_ids:
                booking_id, owner = created_ids[op[1] % len(created_ids)]
                try:
                    await service.cancel_booking(_principal(catalog, owner), booking_id)
                except InvalidStateError:
                    pass

        confirmed = await service.confirmed_bookings_for(catalog["room_id"], 101)
        claimed = [set(stay_dates(b.date_start, b.date_end)) for b in confirmed]
        for i, first in enumerate(claimed):
            for second in claimed[i + 1:]:
                assert not first & second

        # The ledger holds exactly the days of the confirmed stays
        room_number = await HotelService(session).get_room_number_or_raise(catalog["room_id"], 101)
        ledger_days = await AvailabilityLedger(session).reserved_dates(room_number.id)
        assert ledger_days == set().union(*claimed)

    asyncio.run(_with_seeded_session(scenario))


@settings(max_examples=30, deadline=None)
@given(stay=stays)
def test_cancel_releases_every_day(stay):
    start, end = stay

    async def scenario(session, catalog):
        service = BookingService(session)
        principal = _principal(catalog, 0)
        booking = await service.create_booking(principal, booking_request(catalog, start=start, end=end))
        booking_id = booking.id

        cancelled = await service.cancel_booking(principal, booking_id)
        assert cancelled.status == BookingStatus.CANCELLED

        room_number = await HotelService(session).get_room_number_or_raise(catalog["room_id"], 101)
        remaining = await AvailabilityLedger(session).reserved_dates(room_number.id)
        assert remaining.isdisjoint(stay_dates(start, end))

        # Cancel is terminal
        try:
            await service.cancel_booking(principal, booking_id)
        except InvalidStateError:
            pass
        else:
            raise AssertionError("second cancel succeeded")

    asyncio.run(_with_seeded_session(scenario))


@settings(max_examples=50, deadline=None)
@given(first=stays, second=stays)
def test_release_twice_equals_release_once(first, second):
    async def scenario(session, catalog):
        room_number = await HotelService(session).get_room_number_or_raise(catalog["room_id"], 101)
        ledger = AvailabilityLedger(session)
        await ledger.reserve(room_number.id, *first)
        await session.commit()

        await ledger.release(room_number.id, *second)
        once = await ledger.reserved_dates(room_number.id)
        await ledger.release(room_number.id, *second)
        twice = await ledger.reserved_dates(room_number.id)

        assert once == twice == set(stay_dates(*first)) - set(stay_dates(*second))

    asyncio.run(_with_seeded_session(scenario))


@given(stay=stays)
def test_stay_dates_are_consecutive(stay):
    start, end = stay
    days = stay_dates(start, end)

    assert days[0] == start
    assert days[-1] == end
    assert all((b - a).days == 1 for a, b in zip(days, days[1:]))

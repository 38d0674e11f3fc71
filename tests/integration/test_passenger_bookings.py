from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select as sa_select

from tripdesk.errors import InvalidRequest, ReferenceInUse, ReferenceNotFound, SeatConflict, SeatNotFound
from tripdesk.models import Baggage, Seat
from tripdesk.schemas.booking import BaggageIn, CargoIn
from tripdesk.schemas.fleet import BusIn
from tripdesk.schemas.people import PersonIn
from tripdesk.schemas.trip import TripIn
from tripdesk.services import bookings, cargo, fleet, people, seat_ledger, trips


def cargo_for(world, **overrides):
    data = dict(
        description="box of wine",
        weight="12.5",
        trip_id=world.trip.id,
        sender_id=world.ana.id,
        recipient_id=world.bruno.id,
        pickup_address_id=world.home.id,
        delivery_address_id=world.hotel.id,
    )
    data.update(overrides)
    return CargoIn(**data)


async def seat_id(sessionmaker, trip_id, number):
    async with sessionmaker() as db:
        return await db.scalar(sa_select(Seat.id).where(Seat.trip_id == trip_id, Seat.number == number))


async def test_new_bookings_go_to_the_end_of_the_roster(world, call, passenger):
    first = await call(bookings.create_passenger_booking, passenger(world.ana))
    second = await call(bookings.create_passenger_booking, passenger(world.bruno))

    assert second.sort_order == first.sort_order + 1
    assert first.person.name == "Ana Souza"
    assert first.price == Decimal("350.00")
    assert first.paid is False


async def test_missing_references(world, call, passenger):
    with pytest.raises(ReferenceNotFound) as exc:
        await call(bookings.create_passenger_booking, passenger(world.ana, person_id=9999))
    assert exc.value.kind == "person" and exc.value.ref_id == 9999

    with pytest.raises(ReferenceNotFound) as exc:
        await call(bookings.create_passenger_booking, passenger(world.ana, pickup_driver_id=9999))
    assert exc.value.kind == "driver"


async def test_update_is_full_replacement(world, call, passenger, sessionmaker):
    seat_five = await seat_id(sessionmaker, world.trip.id, 5)
    booking = await call(
        bookings.create_passenger_booking,
        passenger(world.ana, pickup_driver_id=world.driver.id, seat_id=seat_five),
    )
    assert booking.seat.number == 5 and booking.pickup_driver_id == world.driver.id

    updated = await call(bookings.update_passenger_booking, booking.id, passenger(world.ana))
    assert updated.seat is None
    assert updated.pickup_driver_id is None
    async with sessionmaker() as db:
        assert not (await db.get(Seat, seat_five)).occupied

    assert await call(bookings.update_passenger_booking, 9999, passenger(world.ana)) is None


async def test_update_rebinds_and_refuses_taken_seat(world, call, passenger, sessionmaker):
    seat_one = await seat_id(sessionmaker, world.trip.id, 1)
    seat_two = await seat_id(sessionmaker, world.trip.id, 2)
    ana = await call(bookings.create_passenger_booking, passenger(world.ana, seat_id=seat_one))
    bruno = await call(bookings.create_passenger_booking, passenger(world.bruno))

    with pytest.raises(SeatConflict):
        await call(bookings.update_passenger_booking, bruno.id, passenger(world.bruno, seat_id=seat_one))

    moved = await call(bookings.update_passenger_booking, ana.id, passenger(world.ana, seat_id=seat_two))
    assert moved.seat.number == 2
    async with sessionmaker() as db:
        assert not (await db.get(Seat, seat_one)).occupied


async def test_seat_from_another_trip(world, call, passenger, sessionmaker):
    other = await call(
        trips.create_trip,
        TripIn(
            departure_at=datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc),
            arrival_at=datetime(2024, 6, 2, 8, 0, tzinfo=timezone.utc),
            bus_ids=[world.bus.id],
        ),
    )
    foreign_seat = await seat_id(sessionmaker, other.id, 3)

    with pytest.raises(SeatNotFound):
        await call(bookings.create_passenger_booking, passenger(world.ana, seat_id=foreign_seat))


async def test_mark_paid_and_color(world, call, passenger):
    booking = await call(bookings.create_passenger_booking, passenger(world.ana))

    paid = await call(bookings.mark_passenger_paid, booking.id)
    assert paid.paid is True
    assert (await call(bookings.mark_passenger_paid, booking.id)).paid is True
    assert await call(bookings.mark_passenger_paid, 9999) is None

    tagged = await call(bookings.set_color, booking.id, "#ff8800")
    assert tagged.color_tag == "#ff8800"


async def test_delete_detaches_baggage(world, call, passenger, sessionmaker):
    booking = await call(bookings.create_passenger_booking, passenger(world.ana))
    bag = await call(cargo.create_baggage, BaggageIn(weight="23", passenger_booking_id=booking.id, responsible_id=world.ana.id))

    assert await call(bookings.delete_passenger_booking, booking.id) is True
    assert await call(bookings.delete_passenger_booking, booking.id) is False
    async with sessionmaker() as db:
        assert (await db.get(Baggage, bag.id)).passenger_booking_id is None


async def test_reorder(world, call, passenger):
    a = await call(bookings.create_passenger_booking, passenger(world.ana))
    b = await call(bookings.create_passenger_booking, passenger(world.bruno))
    c = await call(bookings.create_passenger_booking, passenger(world.carla))

    roster = await call(bookings.reorder_passengers, world.trip.id, [c.id, a.id])
    assert [x.id for x in roster] == [c.id, a.id, b.id]
    assert [x.sort_order for x in roster] == [1, 2, 3]

    with pytest.raises(InvalidRequest):
        await call(bookings.reorder_passengers, world.trip.id, [a.id, a.id])
    with pytest.raises(ReferenceNotFound):
        await call(bookings.reorder_passengers, world.trip.id, [9999])


async def test_trip_totals_follow_bookings(world, call, passenger):
    booking = await call(bookings.create_passenger_booking, passenger(world.ana))
    parcel = await call(cargo.create_cargo, cargo_for(world))
    trip = await call(trips.get_trip, world.trip.id)
    assert (trip.total_passengers, trip.total_cargo) == (1, 1)

    await call(bookings.delete_passenger_booking, booking.id)
    await call(cargo.delete_cargo, parcel.id)
    trip = await call(trips.get_trip, world.trip.id)
    assert (trip.total_passengers, trip.total_cargo) == (0, 0)


async def test_cargo_references_and_paid(world, call):
    with pytest.raises(ReferenceNotFound) as exc:
        await call(cargo.create_cargo, cargo_for(world, recipient_id=9999))
    assert exc.value.kind == "person"

    parcel = await call(cargo.create_cargo, cargo_for(world, responsible_id=world.carla.id))
    assert parcel.responsible_id == world.carla.id
    assert (await call(cargo.mark_cargo_paid, parcel.id)).paid is True
    assert await call(cargo.mark_cargo_paid, 9999) is None

    cleared = await call(cargo.update_cargo, parcel.id, cargo_for(world))
    assert cleared.responsible_id is None
    assert cleared.paid is False


async def test_changing_trip_buses(world, call, passenger, count):
    spare = await call(fleet.create_bus, BusIn(model="Paradiso 1200", plate="202-XYZ", capacity=8, layout=[[1, 2, 0, 3, 4], [5, 6, 0, 7, 8]]))
    dates = dict(departure_at=world.trip.departure_at, arrival_at=world.trip.arrival_at)

    both = await call(trips.update_trip, world.trip.id, TripIn(bus_ids=[world.bus.id, spare.id], **dates))
    assert [b.plate for b in both.buses] == ["101-ABC", "202-XYZ"]
    assert await count(Seat, Seat.trip_id == world.trip.id) == 48

    booking = await call(bookings.create_passenger_booking, passenger(world.ana))
    await call(seat_ledger.bind_seat_for_booking, world.trip.id, spare.id, 3, booking.id)
    with pytest.raises(SeatConflict):
        await call(trips.update_trip, world.trip.id, TripIn(bus_ids=[world.bus.id], **dates))

    await call(seat_ledger.release_seat_for_booking, booking.id)
    await call(trips.update_trip, world.trip.id, TripIn(bus_ids=[world.bus.id], **dates))
    assert await count(Seat, Seat.trip_id == world.trip.id) == 40

    with pytest.raises(ReferenceInUse):
        await call(fleet.delete_bus, world.bus.id)
    assert await call(fleet.delete_bus, spare.id) is True


async def test_trip_dates_and_delete(world, call, passenger, count):
    with pytest.raises(InvalidRequest):
        await call(
            trips.create_trip,
            TripIn(departure_at=world.trip.arrival_at, arrival_at=world.trip.departure_at, bus_ids=[]),
        )

    booking = await call(bookings.create_passenger_booking, passenger(world.ana))
    await call(seat_ledger.bind_seat_for_booking, world.trip.id, world.bus.id, 1, booking.id)
    await call(cargo.create_cargo, cargo_for(world))
    bag = await call(cargo.create_baggage, BaggageIn(passenger_booking_id=booking.id, responsible_id=world.ana.id))

    assert await call(trips.delete_trip, world.trip.id) is True
    assert await call(trips.get_trip, world.trip.id) is None
    assert await count(Seat) == 0
    assert (await call(cargo.get_baggage, bag.id)).passenger_booking_id is None
    assert await call(trips.delete_trip, world.trip.id) is False


async def test_person_rules(world, call, passenger):
    with pytest.raises(InvalidRequest):
        await call(people.create_person, PersonIn(name="Someone Else", national_id="111"))

    await call(bookings.create_passenger_booking, passenger(world.ana))
    with pytest.raises(ReferenceInUse):
        await call(people.delete_person, world.ana.id)

    found = await call(people.search_persons, "souza")
    assert [p.id for p in found] == [world.ana.id]
    assert [p.id for p in await call(people.search_persons, "222")] == [world.bruno.id]

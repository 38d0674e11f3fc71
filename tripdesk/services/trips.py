"""Trips and the buses attached to them.

Passenger and cargo totals are never stored on the trip row: they are counted
on every read so they cannot drift from the booking tables.
"""
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

from sqlalchemy import delete as sa_delete, func, select as sa_select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.errors import InvalidRequest
from tripdesk.models.models import Baggage, Bus, CargoBooking, PassengerBooking, Seat, Trip
from tripdesk.schemas.fleet import BusSummary
from tripdesk.schemas.trip import TripIn, TripOut
from tripdesk.services.audit import log_audit
from tripdesk.services.people import resolve
from tripdesk.services.seat_ledger import drop_seats, generate_seats

logger = logging.getLogger(__name__)


class TripTotals(NamedTuple):
    passengers: int = 0
    cargo: int = 0


def _check_dates(data: TripIn) -> None:
    if data.arrival_at < data.departure_at:
        raise InvalidRequest("arrival_at must not be before departure_at")


async def _resolve_buses(db: AsyncSession, bus_ids: Iterable[int]) -> List[Bus]:
    buses = []
    seen = set()
    for bus_id in bus_ids:
        if bus_id in seen:
            continue
        seen.add(bus_id)
        buses.append(await resolve(db, Bus, bus_id, "bus"))
    return buses


async def load_trip(db: AsyncSession, trip_id: int) -> Optional[Trip]:
    stmt = sa_select(Trip).where(Trip.id == trip_id).options(selectinload(Trip.buses))
    res = await db.execute(stmt.execution_options(populate_existing=True))
    return res.scalars().first()


async def trip_totals(db: AsyncSession, trip_ids: List[int]) -> Dict[int, TripTotals]:
    if not trip_ids:
        return {}
    passengers = await db.execute(
        sa_select(PassengerBooking.trip_id, func.count(PassengerBooking.id))
        .where(PassengerBooking.trip_id.in_(trip_ids))
        .group_by(PassengerBooking.trip_id)
    )
    cargo = await db.execute(
        sa_select(CargoBooking.trip_id, func.count(CargoBooking.id))
        .where(CargoBooking.trip_id.in_(trip_ids))
        .group_by(CargoBooking.trip_id)
    )
    p_counts = dict(passengers.all())
    c_counts = dict(cargo.all())
    return {tid: TripTotals(p_counts.get(tid, 0), c_counts.get(tid, 0)) for tid in trip_ids}


def trip_out(trip: Trip, totals: Dict[int, TripTotals]) -> TripOut:
    counted = totals.get(trip.id, TripTotals())
    return TripOut(
        id=trip.id,
        departure_at=trip.departure_at,
        arrival_at=trip.arrival_at,
        buses=[BusSummary.model_validate(bus) for bus in trip.buses],
        total_passengers=counted.passengers,
        total_cargo=counted.cargo,
    )


async def create_trip(db: AsyncSession, data: TripIn, actor: Optional[str] = None) -> TripOut:
    _check_dates(data)
    async with db.begin():
        buses = await _resolve_buses(db, data.bus_ids)
        trip = Trip(departure_at=data.departure_at, arrival_at=data.arrival_at)
        trip.buses = buses
        db.add(trip)
        await db.flush()
        for bus in buses:
            await generate_seats(db, trip.id, bus)
        await log_audit(db, actor, "create_trip", "trip", trip.id, {"bus_ids": [b.id for b in buses]})
        trip = await load_trip(db, trip.id)
        totals = await trip_totals(db, [trip.id])
    logger.info("trip %s created with %d buses", trip.id, len(trip.buses))
    return trip_out(trip, totals)


async def get_trip(db: AsyncSession, trip_id: int) -> Optional[TripOut]:
    trip = await load_trip(db, trip_id)
    if trip is None:
        return None
    return trip_out(trip, await trip_totals(db, [trip.id]))


async def update_trip(db: AsyncSession, trip_id: int, data: TripIn, actor: Optional[str] = None) -> Optional[TripOut]:
    """Replace dates and bus set.

    Added buses get fresh seats; removed buses lose theirs, which is refused
    with ``SeatConflict`` while any of those seats is occupied.
    """
    _check_dates(data)
    async with db.begin():
        trip = await load_trip(db, trip_id)
        if trip is None:
            return None
        buses = await _resolve_buses(db, data.bus_ids)
        current = {bus.id for bus in trip.buses}
        wanted = {bus.id for bus in buses}
        for bus_id in sorted(current - wanted):
            await drop_seats(db, trip.id, bus_id)
        trip.departure_at = data.departure_at
        trip.arrival_at = data.arrival_at
        trip.buses = buses
        await db.flush()
        for bus in buses:
            if bus.id not in current:
                await generate_seats(db, trip.id, bus)
        await log_audit(
            db,
            actor,
            "update_trip",
            "trip",
            trip.id,
            {"added": sorted(wanted - current), "removed": sorted(current - wanted)},
        )
        trip = await load_trip(db, trip.id)
        totals = await trip_totals(db, [trip.id])
    return trip_out(trip, totals)


async def delete_trip(db: AsyncSession, trip_id: int, actor: Optional[str] = None) -> bool:
    """Remove a trip with its bookings and seats. Baggage is kept, detached."""
    async with db.begin():
        trip = await load_trip(db, trip_id)
        if trip is None:
            return False
        booking_ids = sa_select(PassengerBooking.id).where(PassengerBooking.trip_id == trip_id)
        await db.execute(
            sa_update(Baggage)
            .where(Baggage.passenger_booking_id.in_(booking_ids))
            .values(passenger_booking_id=None)
            .execution_options(synchronize_session=False)
        )
        removed = await db.execute(
            sa_delete(PassengerBooking).where(PassengerBooking.trip_id == trip_id).execution_options(synchronize_session=False)
        )
        await db.execute(sa_delete(CargoBooking).where(CargoBooking.trip_id == trip_id).execution_options(synchronize_session=False))
        await db.execute(sa_delete(Seat).where(Seat.trip_id == trip_id).execution_options(synchronize_session=False))
        await db.delete(trip)
        await log_audit(db, actor, "delete_trip", "trip", trip_id, {"passenger_bookings": removed.rowcount})
    return True

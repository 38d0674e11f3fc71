"""Per-trip seat occupancy.

Seats are rows materialised from a bus layout when a bus is attached to a
trip.  A seat is claimed with a single conditional UPDATE guarded by
``occupied = false``, so two requests racing for the same seat cannot both
win: the loser updates zero rows and gets ``SeatConflict``.  The unique
constraint on ``passenger_bookings.seat_id`` backs this up at the schema
level.

Except for ``bind_seat_for_booking`` these helpers do not open transactions;
callers run them inside ``async with db.begin()``.
"""
import logging
import time
from typing import List, Optional

from sqlalchemy import select as sa_select, update as sa_update, delete as sa_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.errors import ReferenceNotFound, SeatConflict, SeatNotFound
from tripdesk.metrics import SEAT_BIND_ATTEMPTS, SEAT_BIND_LATENCY, SEATS_GENERATED
from tripdesk.models.models import Bus, PassengerBooking, Seat, Trip
from tripdesk.services.audit import log_audit
from tripdesk.services.layout import layout_for_bus

logger = logging.getLogger(__name__)


async def generate_seats(db: AsyncSession, trip_id: int, bus: Bus) -> List[Seat]:
    """Create one unoccupied seat per seat-entry of the bus layout.

    Raises ``LayoutError`` when the stored layout no longer fits the bus
    capacity.
    """
    layout = layout_for_bus(bus)
    seats = [
        Seat(trip_id=trip_id, bus_id=bus.id, number=entry.number, kind=entry.kind.value, occupied=False)
        for entry in layout.seats()
    ]
    db.add_all(seats)
    await db.flush()
    SEATS_GENERATED.inc(len(seats))
    logger.info("generated %d seats for trip %s bus %s", len(seats), trip_id, bus.id)
    return seats


async def drop_seats(db: AsyncSession, trip_id: int, bus_id: int) -> int:
    """Remove the seats of a bus from a trip. Refuses while any is occupied."""
    stmt = sa_select(Seat.id).where(Seat.trip_id == trip_id, Seat.bus_id == bus_id, Seat.occupied.is_(True))
    res = await db.execute(stmt.limit(1))
    if res.first() is not None:
        raise SeatConflict(f"bus {bus_id} still has seated passengers on trip {trip_id}")
    result = await db.execute(
        sa_delete(Seat).where(Seat.trip_id == trip_id, Seat.bus_id == bus_id).execution_options(synchronize_session=False)
    )
    return result.rowcount


async def find_seat(db: AsyncSession, trip_id: int, bus_id: int, number: int) -> Optional[Seat]:
    stmt = sa_select(Seat).where(Seat.trip_id == trip_id, Seat.bus_id == bus_id, Seat.number == number)
    res = await db.execute(stmt)
    return res.scalars().first()


async def lock_booking(db: AsyncSession, booking_id: int) -> Optional[PassengerBooking]:
    """Load a booking with its row locked until the transaction ends.

    The row is re-read even when the session already holds it, so the
    ``seat_id`` a seat move acts on is the committed one.
    """
    return await db.get(PassengerBooking, booking_id, with_for_update=True, populate_existing=True)


async def _mark_free(db: AsyncSession, seat_id: int) -> None:
    await db.execute(
        sa_update(Seat).where(Seat.id == seat_id).values(occupied=False).execution_options(synchronize_session=False)
    )


async def bind_seat(db: AsyncSession, booking: PassengerBooking, bus_id: int, number: int) -> Seat:
    """Claim seat ``number`` of ``bus_id`` on the booking's trip for ``booking``.

    Re-binding the seat the booking already holds is a no-op.  If the booking
    held a different seat, the new one is claimed first and the old one is
    released only after the claim succeeded.
    """
    seat = await find_seat(db, booking.trip_id, bus_id, number)
    if seat is None:
        SEAT_BIND_ATTEMPTS.labels(result="not_found").inc()
        raise SeatNotFound(booking.trip_id, bus_id, number)
    if booking.seat_id == seat.id:
        SEAT_BIND_ATTEMPTS.labels(result="unchanged").inc()
        return seat

    claim = (
        sa_update(Seat)
        .where(Seat.id == seat.id)
        .where(Seat.occupied.is_(False))
        .values(occupied=True)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(claim)
    if result.rowcount == 0:
        SEAT_BIND_ATTEMPTS.labels(result="conflict").inc()
        logger.warning("seat %s of bus %s on trip %s already occupied", seat.number, bus_id, booking.trip_id)
        raise SeatConflict(f"seat {number} of bus {bus_id} is already occupied")

    previous_seat_id = booking.seat_id
    if previous_seat_id is not None:
        await _mark_free(db, previous_seat_id)
    booking.seat_id = seat.id
    try:
        await db.flush()
    except IntegrityError:
        SEAT_BIND_ATTEMPTS.labels(result="conflict").inc()
        raise SeatConflict(f"seat {number} of bus {bus_id} is already referenced by another booking")
    await db.refresh(seat)
    SEAT_BIND_ATTEMPTS.labels(result="success").inc()
    logger.info("booking %s bound to seat %s of bus %s on trip %s", booking.id, seat.number, bus_id, booking.trip_id)
    return seat


async def bind_seat_by_id(db: AsyncSession, booking: PassengerBooking, seat_id: int) -> Seat:
    """Bind by seat row id; the seat must belong to the booking's trip."""
    seat = await db.get(Seat, seat_id)
    if seat is None or seat.trip_id != booking.trip_id:
        SEAT_BIND_ATTEMPTS.labels(result="not_found").inc()
        raise SeatNotFound(booking.trip_id, seat.bus_id if seat else None, seat_id)
    return await bind_seat(db, booking, seat.bus_id, seat.number)


async def release_seat(db: AsyncSession, booking: PassengerBooking) -> bool:
    """Free the booking's seat. Returns False when it held none."""
    if booking.seat_id is None:
        return False
    seat_id = booking.seat_id
    booking.seat_id = None
    await db.flush()
    await _mark_free(db, seat_id)
    logger.info("booking %s released seat row %s", booking.id, seat_id)
    return True


async def bind_seat_for_booking(db: AsyncSession, trip_id: int, bus_id: int, number: int, booking_id: int, actor: Optional[str] = None) -> Seat:
    """Transactional entry point used by the HTTP layer."""
    start = time.perf_counter()
    async with db.begin():
        booking = await lock_booking(db, booking_id)
        if booking is None:
            raise ReferenceNotFound("passenger_booking", booking_id)
        if booking.trip_id != trip_id:
            SEAT_BIND_ATTEMPTS.labels(result="not_found").inc()
            raise SeatNotFound(trip_id, bus_id, number)
        seat = await bind_seat(db, booking, bus_id, number)
        await log_audit(db, actor, "bind_seat", "seat", seat.id, {"booking_id": booking_id, "bus_id": bus_id, "number": number})
    SEAT_BIND_LATENCY.observe(time.perf_counter() - start)
    return seat


async def release_seat_for_booking(db: AsyncSession, booking_id: int, actor: Optional[str] = None) -> Optional[bool]:
    """Release the seat of a booking. ``None`` when the booking does not exist."""
    async with db.begin():
        booking = await lock_booking(db, booking_id)
        if booking is None:
            return None
        released = await release_seat(db, booking)
        if released:
            await log_audit(db, actor, "release_seat", "passenger_booking", booking_id)
    return released


async def list_trip_seats(db: AsyncSession, trip_id: int) -> List[Seat]:
    """Seat map of a trip ordered by seat number, occupants preloaded."""
    trip = await db.get(Trip, trip_id)
    if trip is None:
        raise ReferenceNotFound("trip", trip_id)
    stmt = (
        sa_select(Seat)
        .where(Seat.trip_id == trip_id)
        .options(selectinload(Seat.occupant).selectinload(PassengerBooking.person))
        .order_by(Seat.number, Seat.bus_id, Seat.id)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())

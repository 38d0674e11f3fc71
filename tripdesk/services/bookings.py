"""Passenger booking entries.

Every reference is resolved by id at the start of the operation. Updates are
full replacements; seat changes go through the seat ledger inside the same
transaction as the booking write.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select as sa_select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.errors import InvalidRequest, ReferenceNotFound
from tripdesk.models.models import Address, Baggage, Driver, PassengerBooking, Person, ReferralAgent, Trip
from tripdesk.schemas.booking import PassengerBookingIn
from tripdesk.services.audit import log_audit
from tripdesk.services.people import resolve, resolve_optional
from tripdesk.services.seat_ledger import bind_seat_by_id, lock_booking, release_seat

logger = logging.getLogger(__name__)


async def next_sort_order(db: AsyncSession, trip_id: int) -> int:
    current = await db.scalar(sa_select(func.max(PassengerBooking.sort_order)).where(PassengerBooking.trip_id == trip_id))
    return (current or 0) + 1


def _with_relations(stmt):
    return stmt.options(selectinload(PassengerBooking.person), selectinload(PassengerBooking.seat)).execution_options(
        populate_existing=True
    )


async def get_passenger_booking(db: AsyncSession, booking_id: int) -> Optional[PassengerBooking]:
    res = await db.execute(_with_relations(sa_select(PassengerBooking).where(PassengerBooking.id == booking_id)))
    return res.scalars().first()


async def load_passenger_bookings(db: AsyncSession, booking_ids: List[int]) -> List[PassengerBooking]:
    """Bookings in the order of ``booking_ids``."""
    if not booking_ids:
        return []
    res = await db.execute(_with_relations(sa_select(PassengerBooking).where(PassengerBooking.id.in_(booking_ids))))
    by_id = {b.id: b for b in res.scalars().all()}
    return [by_id[i] for i in booking_ids if i in by_id]


async def list_trip_passengers(db: AsyncSession, trip_id: int) -> List[PassengerBooking]:
    stmt = sa_select(PassengerBooking).where(PassengerBooking.trip_id == trip_id)
    res = await db.execute(_with_relations(stmt.order_by(PassengerBooking.sort_order, PassengerBooking.id)))
    return list(res.scalars().all())


async def _apply(db: AsyncSession, booking: PassengerBooking, data: PassengerBookingIn) -> None:
    person = await resolve(db, Person, data.person_id, "person")
    trip = await resolve(db, Trip, data.trip_id, "trip")
    pickup = await resolve(db, Address, data.pickup_address_id, "address")
    delivery = await resolve(db, Address, data.delivery_address_id, "address")
    pickup_driver = await resolve_optional(db, Driver, data.pickup_driver_id, "driver")
    delivery_driver = await resolve_optional(db, Driver, data.delivery_driver_id, "driver")
    agent = await resolve_optional(db, ReferralAgent, data.referral_agent_id, "referral_agent")

    if booking.trip_id is not None and booking.trip_id != trip.id:
        booking.sort_order = await next_sort_order(db, trip.id)
    booking.person_id = person.id
    booking.trip_id = trip.id
    booking.pickup_address_id = pickup.id
    booking.delivery_address_id = delivery.id
    booking.pickup_driver_id = pickup_driver.id if pickup_driver else None
    booking.delivery_driver_id = delivery_driver.id if delivery_driver else None
    booking.referral_agent_id = agent.id if agent else None
    booking.price = data.price
    booking.payment_method = data.payment_method
    booking.paid = data.paid
    booking.color_tag = data.color_tag


async def create_passenger_booking(db: AsyncSession, data: PassengerBookingIn, actor: Optional[str] = None) -> PassengerBooking:
    async with db.begin():
        booking = PassengerBooking()
        await _apply(db, booking, data)
        booking.sort_order = await next_sort_order(db, booking.trip_id)
        db.add(booking)
        await db.flush()
        if data.seat_id is not None:
            await bind_seat_by_id(db, booking, data.seat_id)
        await log_audit(db, actor, "create_passenger_booking", "passenger_booking", booking.id, {"trip_id": booking.trip_id})
        booking = await get_passenger_booking(db, booking.id)
    logger.info("passenger booking %s created on trip %s", booking.id, booking.trip_id)
    return booking


async def update_passenger_booking(
    db: AsyncSession, booking_id: int, data: PassengerBookingIn, actor: Optional[str] = None
) -> Optional[PassengerBooking]:
    async with db.begin():
        booking = await lock_booking(db, booking_id)
        if booking is None:
            return None
        previous_seat = booking.seat_id
        await _apply(db, booking, data)
        if data.seat_id is None:
            await release_seat(db, booking)
        else:
            await bind_seat_by_id(db, booking, data.seat_id)
        await db.flush()
        await log_audit(
            db,
            actor,
            "update_passenger_booking",
            "passenger_booking",
            booking_id,
            {"seat_before": previous_seat, "seat_after": booking.seat_id},
        )
        booking = await get_passenger_booking(db, booking_id)
    return booking


async def delete_passenger_booking(db: AsyncSession, booking_id: int, actor: Optional[str] = None) -> bool:
    async with db.begin():
        booking = await lock_booking(db, booking_id)
        if booking is None:
            return False
        await release_seat(db, booking)
        await db.execute(
            sa_update(Baggage)
            .where(Baggage.passenger_booking_id == booking_id)
            .values(passenger_booking_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.delete(booking)
        await log_audit(db, actor, "delete_passenger_booking", "passenger_booking", booking_id)
    logger.info("passenger booking %s deleted", booking_id)
    return True


async def mark_passenger_paid(db: AsyncSession, booking_id: int, actor: Optional[str] = None) -> Optional[PassengerBooking]:
    async with db.begin():
        booking = await db.get(PassengerBooking, booking_id)
        if booking is None:
            return None
        if not booking.paid:
            booking.paid = True
            await log_audit(db, actor, "mark_paid", "passenger_booking", booking_id)
        booking = await get_passenger_booking(db, booking_id)
    return booking


async def set_color(db: AsyncSession, booking_id: int, color_tag: Optional[str], actor: Optional[str] = None) -> Optional[PassengerBooking]:
    async with db.begin():
        booking = await db.get(PassengerBooking, booking_id)
        if booking is None:
            return None
        booking.color_tag = color_tag
        await log_audit(db, actor, "set_color", "passenger_booking", booking_id, {"color_tag": color_tag})
        booking = await get_passenger_booking(db, booking_id)
    return booking


async def reorder_passengers(db: AsyncSession, trip_id: int, booking_ids: List[int], actor: Optional[str] = None) -> List[PassengerBooking]:
    """Put ``booking_ids`` first, in that order; unlisted bookings keep their relative order after them."""
    if len(set(booking_ids)) != len(booking_ids):
        raise InvalidRequest("booking ids must not repeat")
    async with db.begin():
        await resolve(db, Trip, trip_id, "trip")
        current = await list_trip_passengers(db, trip_id)
        by_id = {b.id: b for b in current}
        for booking_id in booking_ids:
            if booking_id not in by_id:
                if await db.get(PassengerBooking, booking_id) is None:
                    raise ReferenceNotFound("passenger_booking", booking_id)
                raise InvalidRequest(f"passenger booking {booking_id} is not on trip {trip_id}")
        listed = set(booking_ids)
        ordered = [by_id[i] for i in booking_ids] + [b for b in current if b.id not in listed]
        for position, booking in enumerate(ordered, start=1):
            booking.sort_order = position
        await log_audit(db, actor, "reorder_passengers", "trip", trip_id, {"booking_ids": booking_ids})
        result = await list_trip_passengers(db, trip_id)
    return result

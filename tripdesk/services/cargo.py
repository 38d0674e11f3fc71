"""Cargo bookings and baggage."""
import logging
from typing import List, Optional

from sqlalchemy import select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.models.models import Address, Baggage, CargoBooking, Driver, PassengerBooking, Person, ReferralAgent, Trip
from tripdesk.schemas.booking import BaggageIn, CargoIn
from tripdesk.services.audit import log_audit
from tripdesk.services.people import resolve, resolve_optional

logger = logging.getLogger(__name__)


async def _apply(db: AsyncSession, cargo: CargoBooking, data: CargoIn) -> None:
    trip = await resolve(db, Trip, data.trip_id, "trip")
    sender = await resolve(db, Person, data.sender_id, "person")
    recipient = await resolve(db, Person, data.recipient_id, "person")
    responsible = await resolve_optional(db, Person, data.responsible_id, "person")
    pickup = await resolve(db, Address, data.pickup_address_id, "address")
    delivery = await resolve(db, Address, data.delivery_address_id, "address")
    pickup_driver = await resolve_optional(db, Driver, data.pickup_driver_id, "driver")
    delivery_driver = await resolve_optional(db, Driver, data.delivery_driver_id, "driver")
    agent = await resolve_optional(db, ReferralAgent, data.referral_agent_id, "referral_agent")

    cargo.description = data.description
    cargo.weight = data.weight
    cargo.trip_id = trip.id
    cargo.sender_id = sender.id
    cargo.recipient_id = recipient.id
    cargo.responsible_id = responsible.id if responsible else None
    cargo.pickup_address_id = pickup.id
    cargo.delivery_address_id = delivery.id
    cargo.pickup_driver_id = pickup_driver.id if pickup_driver else None
    cargo.delivery_driver_id = delivery_driver.id if delivery_driver else None
    cargo.referral_agent_id = agent.id if agent else None
    cargo.price = data.price
    cargo.payment_method = data.payment_method
    cargo.paid = data.paid


async def create_cargo(db: AsyncSession, data: CargoIn, actor: Optional[str] = None) -> CargoBooking:
    async with db.begin():
        cargo = CargoBooking()
        await _apply(db, cargo, data)
        db.add(cargo)
        await db.flush()
        await log_audit(db, actor, "create_cargo", "cargo_booking", cargo.id, {"trip_id": cargo.trip_id})
    logger.info("cargo booking %s created on trip %s", cargo.id, cargo.trip_id)
    return cargo


async def update_cargo(db: AsyncSession, cargo_id: int, data: CargoIn, actor: Optional[str] = None) -> Optional[CargoBooking]:
    async with db.begin():
        cargo = await db.get(CargoBooking, cargo_id)
        if cargo is None:
            return None
        await _apply(db, cargo, data)
        await log_audit(db, actor, "update_cargo", "cargo_booking", cargo_id)
    return cargo


async def delete_cargo(db: AsyncSession, cargo_id: int, actor: Optional[str] = None) -> bool:
    async with db.begin():
        cargo = await db.get(CargoBooking, cargo_id)
        if cargo is None:
            return False
        await db.delete(cargo)
        await log_audit(db, actor, "delete_cargo", "cargo_booking", cargo_id)
    return True


async def mark_cargo_paid(db: AsyncSession, cargo_id: int, actor: Optional[str] = None) -> Optional[CargoBooking]:
    async with db.begin():
        cargo = await db.get(CargoBooking, cargo_id)
        if cargo is None:
            return None
        if not cargo.paid:
            cargo.paid = True
            await log_audit(db, actor, "mark_paid", "cargo_booking", cargo_id)
    return cargo


async def get_cargo(db: AsyncSession, cargo_id: int) -> Optional[CargoBooking]:
    return await db.get(CargoBooking, cargo_id)


async def list_trip_cargo(db: AsyncSession, trip_id: int) -> List[CargoBooking]:
    res = await db.execute(sa_select(CargoBooking).where(CargoBooking.trip_id == trip_id).order_by(CargoBooking.id))
    return list(res.scalars().all())


# -- baggage -----------------------------------------------------------------

async def _apply_baggage(db: AsyncSession, baggage: Baggage, data: BaggageIn) -> None:
    responsible = await resolve(db, Person, data.responsible_id, "person")
    booking = await resolve_optional(db, PassengerBooking, data.passenger_booking_id, "passenger_booking")
    baggage.weight = data.weight
    baggage.description = data.description
    baggage.responsible_id = responsible.id
    baggage.passenger_booking_id = booking.id if booking else None


async def create_baggage(db: AsyncSession, data: BaggageIn, actor: Optional[str] = None) -> Baggage:
    async with db.begin():
        baggage = Baggage()
        await _apply_baggage(db, baggage, data)
        db.add(baggage)
        await db.flush()
        await log_audit(db, actor, "create_baggage", "baggage", baggage.id)
    return baggage


async def update_baggage(db: AsyncSession, baggage_id: int, data: BaggageIn, actor: Optional[str] = None) -> Optional[Baggage]:
    async with db.begin():
        baggage = await db.get(Baggage, baggage_id)
        if baggage is None:
            return None
        await _apply_baggage(db, baggage, data)
        await log_audit(db, actor, "update_baggage", "baggage", baggage_id)
    return baggage


async def delete_baggage(db: AsyncSession, baggage_id: int, actor: Optional[str] = None) -> bool:
    async with db.begin():
        baggage = await db.get(Baggage, baggage_id)
        if baggage is None:
            return False
        await db.delete(baggage)
        await log_audit(db, actor, "delete_baggage", "baggage", baggage_id)
    return True


async def get_baggage(db: AsyncSession, baggage_id: int) -> Optional[Baggage]:
    return await db.get(Baggage, baggage_id)


async def list_baggage(db: AsyncSession, passenger_booking_id: Optional[int] = None) -> List[Baggage]:
    stmt = sa_select(Baggage)
    if passenger_booking_id is not None:
        stmt = stmt.where(Baggage.passenger_booking_id == passenger_booking_id)
    res = await db.execute(stmt.order_by(Baggage.id))
    return list(res.scalars().all())

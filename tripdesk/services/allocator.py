"""Multi-row booking operations that either apply completely or not at all.

Both entry points run in a single transaction. Any ``DomainError`` raised
part-way leaves the transaction block, which rolls back every person,
address, booking and seat claim written before it.
"""
import logging
import uuid
from typing import List, Optional, Type

from sqlalchemy import select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.errors import InvalidRequest, ReferenceNotFound, SeatNotFound
from tripdesk.metrics import BULK_ASSIGNED, FAMILY_GROUP_MEMBERS
from tripdesk.models.models import Address, CargoBooking, Driver, PassengerBooking, Person, ReferralAgent, Trip
from tripdesk.schemas.booking import (
    AssignmentLeg,
    BulkAssignOut,
    BulkAssignRequest,
    FamilyAddress,
    FamilyGroupOut,
    FamilyGroupRequest,
    FamilyMember,
    PassengerBookingOut,
)
from tripdesk.services.audit import log_audit
from tripdesk.services.bookings import load_passenger_bookings, next_sort_order
from tripdesk.services.people import ensure_national_id_free, find_person_by_national_id, resolve, resolve_optional
from tripdesk.services.seat_ledger import bind_seat, lock_booking

logger = logging.getLogger(__name__)


async def _shared_address(db: AsyncSession, given: Optional[FamilyAddress]) -> Optional[Address]:
    if given is None:
        return None
    if given.id is not None:
        return await resolve(db, Address, given.id, "address")
    if not (given.street and given.city and given.state):
        raise InvalidRequest("a new shared address needs street, city and state")
    address = Address(**given.model_dump(exclude={"id"}))
    db.add(address)
    await db.flush()
    return address


async def _member_person(db: AsyncSession, member: FamilyMember) -> Person:
    national_id = member.national_id or None
    person = None
    if member.person_id is not None:
        person = await resolve(db, Person, member.person_id, "person")
    elif national_id:
        person = await find_person_by_national_id(db, national_id)

    if person is None:
        if not member.name:
            raise InvalidRequest("each member needs a person id, a known national id or a name")
        person = Person(name=member.name, national_id=national_id, age=member.age, phones=list(member.phones or []))
        db.add(person)
        await db.flush()
        return person

    if member.name:
        person.name = member.name
    if national_id and national_id != person.national_id:
        await ensure_national_id_free(db, national_id, person.id)
        person.national_id = national_id
    if member.age is not None:
        person.age = member.age
    if member.phones is not None:
        person.phones = list(member.phones)
    return person


async def _pick(db: AsyncSession, model: Type, override: Optional[int], shared, current: Optional[int], kind: str) -> Optional[int]:
    # member override > shared value > what the booking already had
    if override is not None:
        return (await resolve(db, model, override, kind)).id
    if shared is not None:
        return shared.id
    return current


async def create_family_group(db: AsyncSession, request: FamilyGroupRequest, actor: Optional[str] = None) -> FamilyGroupOut:
    group_id = str(uuid.uuid4())
    async with db.begin():
        res = await db.execute(sa_select(Trip).where(Trip.id == request.trip_id).options(selectinload(Trip.buses)))
        trip = res.scalars().first()
        if trip is None:
            raise ReferenceNotFound("trip", request.trip_id)
        pickup_driver = await resolve_optional(db, Driver, request.pickup_driver_id, "driver")
        delivery_driver = await resolve_optional(db, Driver, request.delivery_driver_id, "driver")
        agent = await resolve_optional(db, ReferralAgent, request.referral_agent_id, "referral_agent")
        pickup_address = await _shared_address(db, request.pickup_address)
        delivery_address = await _shared_address(db, request.delivery_address)
        default_bus_id = trip.buses[0].id if trip.buses else None

        order = await next_sort_order(db, trip.id)
        booking_ids: List[int] = []
        for position, member in enumerate(request.members):
            person = await _member_person(db, member)
            if member.id is not None:
                booking = await lock_booking(db, member.id)
                if booking is None:
                    raise ReferenceNotFound("passenger_booking", member.id)
                if booking.trip_id != trip.id:
                    raise InvalidRequest(f"passenger booking {booking.id} belongs to trip {booking.trip_id}")
            else:
                booking = PassengerBooking(trip_id=trip.id, sort_order=order, paid=False)
                order += 1

            booking.person_id = person.id
            booking.pickup_address_id = await _pick(
                db, Address, member.pickup_address_id, pickup_address, booking.pickup_address_id, "address"
            )
            booking.delivery_address_id = await _pick(
                db, Address, member.delivery_address_id, delivery_address, booking.delivery_address_id, "address"
            )
            if booking.pickup_address_id is None or booking.delivery_address_id is None:
                raise InvalidRequest(f"member {position} has no pickup or delivery address")
            booking.pickup_driver_id = await _pick(
                db, Driver, member.pickup_driver_id, pickup_driver, booking.pickup_driver_id, "driver"
            )
            booking.delivery_driver_id = await _pick(
                db, Driver, member.delivery_driver_id, delivery_driver, booking.delivery_driver_id, "driver"
            )
            booking.referral_agent_id = await _pick(
                db, ReferralAgent, member.referral_agent_id, agent, booking.referral_agent_id, "referral_agent"
            )
            if member.price is not None:
                booking.price = member.price
            elif request.suggested_price is not None:
                booking.price = request.suggested_price
            booking.payment_method = member.payment_method or request.payment_method or booking.payment_method
            booking.group_id = group_id
            booking.color_tag = request.color_tag
            if booking.id is None:
                db.add(booking)
            await db.flush()

            if member.seat_number is not None:
                bus_id = member.bus_id if member.bus_id is not None else default_bus_id
                if bus_id is None:
                    raise SeatNotFound(trip.id, None, member.seat_number)
                await bind_seat(db, booking, bus_id, member.seat_number)
            booking_ids.append(booking.id)

        await log_audit(
            db, actor, "create_family_group", "trip", trip.id, {"group_id": group_id, "booking_ids": booking_ids}
        )
        entries = await load_passenger_bookings(db, booking_ids)
        out = FamilyGroupOut(
            group_id=group_id,
            color_tag=request.color_tag,
            entries=[PassengerBookingOut.model_validate(e) for e in entries],
        )
    FAMILY_GROUP_MEMBERS.inc(len(booking_ids))
    logger.info("family group %s written with %d members on trip %s", group_id, len(booking_ids), request.trip_id)
    return out


async def _load_all(db: AsyncSession, model: Type, ids: List[int], kind: str) -> List:
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return []
    res = await db.execute(sa_select(model).where(model.id.in_(wanted)))
    found = {obj.id: obj for obj in res.scalars().all()}
    for ref_id in wanted:
        if ref_id not in found:
            raise ReferenceNotFound(kind, ref_id)
    return [found[i] for i in wanted]


async def bulk_assign(db: AsyncSession, request: BulkAssignRequest, actor: Optional[str] = None) -> BulkAssignOut:
    """Set the pickup or delivery driver on every listed booking, or on none."""
    column = "pickup_driver_id" if request.type == AssignmentLeg.PICKUP else "delivery_driver_id"
    async with db.begin():
        driver = await resolve(db, Driver, request.driver_id, "driver")
        passengers = await _load_all(db, PassengerBooking, request.passenger_ids, "passenger_booking")
        cargo = await _load_all(db, CargoBooking, request.cargo_ids, "cargo_booking")
        for booking in passengers + cargo:
            setattr(booking, column, driver.id)
        await log_audit(
            db,
            actor,
            "bulk_assign",
            "driver",
            driver.id,
            {"leg": request.type.value, "passenger_ids": [b.id for b in passengers], "cargo_ids": [c.id for c in cargo]},
        )
    leg = request.type.value.lower()
    BULK_ASSIGNED.labels(kind="passenger", leg=leg).inc(len(passengers))
    BULK_ASSIGNED.labels(kind="cargo", leg=leg).inc(len(cargo))
    logger.info("driver %s assigned to %d passengers and %d cargo for %s", driver.id, len(passengers), len(cargo), leg)
    return BulkAssignOut(passengers_updated=len(passengers), cargo_updated=len(cargo))

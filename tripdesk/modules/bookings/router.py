from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.booking import (
    BulkAssignOut,
    BulkAssignRequest,
    ColorRequest,
    FamilyGroupOut,
    FamilyGroupRequest,
    PassengerBookingIn,
    PassengerBookingOut,
    ReorderRequest,
)
from tripdesk.services import allocator, bookings, seat_ledger

router = APIRouter()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Passenger booking not found")


@router.post("/passengers/", response_model=PassengerBookingOut, status_code=status.HTTP_201_CREATED)
async def create_passenger(
    data: PassengerBookingIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    return await bookings.create_passenger_booking(db, data, actor.subject)


@router.post("/passengers/family", response_model=FamilyGroupOut, status_code=status.HTTP_201_CREATED)
async def create_family(
    req: FamilyGroupRequest, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    """Create or update a group of passengers travelling together, all or nothing."""
    return await allocator.create_family_group(db, req, actor.subject)


@router.get("/passengers/{booking_id}", response_model=PassengerBookingOut)
async def get_passenger(booking_id: int, db: AsyncSession = Depends(get_session)):
    booking = await bookings.get_passenger_booking(db, booking_id)
    if booking is None:
        raise _not_found()
    return booking


@router.put("/passengers/{booking_id}", response_model=PassengerBookingOut)
async def update_passenger(
    booking_id: int,
    data: PassengerBookingIn,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    booking = await bookings.update_passenger_booking(db, booking_id, data, actor.subject)
    if booking is None:
        raise _not_found()
    return booking


@router.delete("/passengers/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_passenger(
    booking_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    if not await bookings.delete_passenger_booking(db, booking_id, actor.subject):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/passengers/{booking_id}/paid", response_model=PassengerBookingOut)
async def mark_paid(booking_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    booking = await bookings.mark_passenger_paid(db, booking_id, actor.subject)
    if booking is None:
        raise _not_found()
    return booking


@router.post("/passengers/{booking_id}/color", response_model=PassengerBookingOut)
async def set_color(
    booking_id: int,
    req: ColorRequest,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    booking = await bookings.set_color(db, booking_id, req.color_tag, actor.subject)
    if booking is None:
        raise _not_found()
    return booking


@router.post("/passengers/{booking_id}/release-seat")
async def release_seat(
    booking_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    released = await seat_ledger.release_seat_for_booking(db, booking_id, actor.subject)
    if released is None:
        raise _not_found()
    return {"booking_id": booking_id, "released": released}


@router.get("/trips/{trip_id}/passengers", response_model=List[PassengerBookingOut])
async def trip_passengers(trip_id: int, db: AsyncSession = Depends(get_session)):
    """Roster of a trip in display order."""
    return await bookings.list_trip_passengers(db, trip_id)


@router.post("/trips/{trip_id}/reorder", response_model=List[PassengerBookingOut])
async def reorder(
    trip_id: int,
    req: ReorderRequest,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return await bookings.reorder_passengers(db, trip_id, req.booking_ids, actor.subject)


@router.post("/bulk-assign", response_model=BulkAssignOut)
async def bulk_assign(
    req: BulkAssignRequest, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    """Assign one driver to the pickup or delivery leg of many bookings."""
    return await allocator.bulk_assign(db, req, actor.subject)

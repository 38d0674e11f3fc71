from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.trip import BindSeatRequest, SeatMapEntry, SeatOut, TripIn, TripOut, TripPage
from tripdesk.services import seat_ledger, trips as trip_service
from tripdesk.services.trip_query import find_trips

router = APIRouter()


@router.get("/", response_model=TripPage)
async def list_trips(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900),
    search: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    db: AsyncSession = Depends(get_session),
):
    """Trips departing in the given month/year whose buses match ``search``."""
    return await find_trips(db, month=month, year=year, search=search, page=page, size=size, sort=sort)


@router.post("/", response_model=TripOut, status_code=status.HTTP_201_CREATED)
async def create_trip(data: TripIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    return await trip_service.create_trip(db, data, actor.subject)


@router.get("/{trip_id}", response_model=TripOut)
async def get_trip(trip_id: int, db: AsyncSession = Depends(get_session)):
    trip = await trip_service.get_trip(db, trip_id)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


@router.put("/{trip_id}", response_model=TripOut)
async def update_trip(
    trip_id: int, data: TripIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    trip = await trip_service.update_trip(db, trip_id, data, actor.subject)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(trip_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await trip_service.delete_trip(db, trip_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{trip_id}/seats", response_model=List[SeatMapEntry])
async def trip_seats(trip_id: int, db: AsyncSession = Depends(get_session)):
    """Seat map of the trip with the occupying passenger, if any."""
    seats = await seat_ledger.list_trip_seats(db, trip_id)
    return [SeatMapEntry.from_seat(seat) for seat in seats]


@router.post("/{trip_id}/seats/bind", response_model=SeatOut)
async def bind_seat(
    trip_id: int,
    req: BindSeatRequest,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """Claim a seat for a passenger booking; 409 when someone else holds it."""
    return await seat_ledger.bind_seat_for_booking(db, trip_id, req.bus_id, req.number, req.booking_id, actor.subject)

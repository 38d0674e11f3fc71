from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.booking import BaggageIn, BaggageOut
from tripdesk.services import cargo as cargo_service

router = APIRouter()


@router.get("/", response_model=List[BaggageOut])
async def list_baggage(passenger_booking_id: Optional[int] = None, db: AsyncSession = Depends(get_session)):
    return await cargo_service.list_baggage(db, passenger_booking_id)


@router.post("/", response_model=BaggageOut, status_code=status.HTTP_201_CREATED)
async def create_baggage(data: BaggageIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    return await cargo_service.create_baggage(db, data, actor.subject)


@router.get("/{baggage_id}", response_model=BaggageOut)
async def get_baggage(baggage_id: int, db: AsyncSession = Depends(get_session)):
    baggage = await cargo_service.get_baggage(db, baggage_id)
    if baggage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Baggage not found")
    return baggage


@router.put("/{baggage_id}", response_model=BaggageOut)
async def update_baggage(
    baggage_id: int, data: BaggageIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    baggage = await cargo_service.update_baggage(db, baggage_id, data, actor.subject)
    if baggage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Baggage not found")
    return baggage


@router.delete("/{baggage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_baggage(baggage_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await cargo_service.delete_baggage(db, baggage_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Baggage not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.fleet import BusIn, BusLayoutOut, BusOut
from tripdesk.services import fleet

router = APIRouter()


@router.get("/", response_model=List[BusOut])
async def list_buses(db: AsyncSession = Depends(get_session)):
    return await fleet.list_buses(db)


@router.post("/", response_model=BusOut, status_code=status.HTTP_201_CREATED)
async def create_bus(data: BusIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    """Register a bus. The layout is checked against the capacity here, once."""
    return await fleet.create_bus(db, data, actor.subject)


@router.get("/{bus_id}", response_model=BusOut)
async def get_bus(bus_id: int, db: AsyncSession = Depends(get_session)):
    bus = await fleet.get_bus(db, bus_id)
    if bus is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bus not found")
    return bus


@router.get("/{bus_id}/layout", response_model=BusLayoutOut)
async def bus_layout(bus_id: int, db: AsyncSession = Depends(get_session)):
    bus = await fleet.get_bus(db, bus_id)
    if bus is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bus not found")
    return fleet.render_layout(bus)


@router.put("/{bus_id}", response_model=BusOut)
async def update_bus(
    bus_id: int, data: BusIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    bus = await fleet.update_bus(db, bus_id, data, actor.subject)
    if bus is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bus not found")
    return bus


@router.delete("/{bus_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bus(bus_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await fleet.delete_bus(db, bus_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bus not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.booking import CargoIn, CargoOut
from tripdesk.services import cargo as cargo_service

router = APIRouter()


@router.get("/", response_model=List[CargoOut])
async def list_cargo(trip_id: int, db: AsyncSession = Depends(get_session)):
    return await cargo_service.list_trip_cargo(db, trip_id)


@router.post("/", response_model=CargoOut, status_code=status.HTTP_201_CREATED)
async def create_cargo(data: CargoIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    return await cargo_service.create_cargo(db, data, actor.subject)


@router.get("/{cargo_id}", response_model=CargoOut)
async def get_cargo(cargo_id: int, db: AsyncSession = Depends(get_session)):
    cargo = await cargo_service.get_cargo(db, cargo_id)
    if cargo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cargo booking not found")
    return cargo


@router.put("/{cargo_id}", response_model=CargoOut)
async def update_cargo(
    cargo_id: int, data: CargoIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    cargo = await cargo_service.update_cargo(db, cargo_id, data, actor.subject)
    if cargo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cargo booking not found")
    return cargo


@router.delete("/{cargo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cargo(cargo_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await cargo_service.delete_cargo(db, cargo_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cargo booking not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{cargo_id}/paid", response_model=CargoOut)
async def mark_paid(cargo_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    cargo = await cargo_service.mark_cargo_paid(db, cargo_id, actor.subject)
    if cargo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cargo booking not found")
    return cargo

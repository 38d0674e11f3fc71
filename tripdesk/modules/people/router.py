from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.people import AddressIn, AddressOut, PersonIn, PersonOut
from tripdesk.services import people

router = APIRouter()


@router.get("/persons", response_model=List[PersonOut])
async def search_persons(q: Optional[str] = None, db: AsyncSession = Depends(get_session)):
    """Top ten persons whose name contains ``q`` or whose national id is ``q``."""
    return await people.search_persons(db, q)


@router.post("/persons", response_model=PersonOut, status_code=status.HTTP_201_CREATED)
async def create_person(data: PersonIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    return await people.create_person(db, data, actor.subject)


@router.get("/persons/{person_id}", response_model=PersonOut)
async def get_person(person_id: int, db: AsyncSession = Depends(get_session)):
    person = await people.get_person(db, person_id)
    if person is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    return person


@router.put("/persons/{person_id}", response_model=PersonOut)
async def update_person(
    person_id: int, data: PersonIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    person = await people.update_person(db, person_id, data, actor.subject)
    if person is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    return person


@router.delete("/persons/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await people.delete_person(db, person_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/addresses", response_model=List[AddressOut])
async def search_addresses(q: Optional[str] = None, db: AsyncSession = Depends(get_session)):
    return await people.search_addresses(db, q)


@router.post("/addresses", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
async def create_address(data: AddressIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    return await people.create_address(db, data, actor.subject)


@router.get("/addresses/{address_id}", response_model=AddressOut)
async def get_address(address_id: int, db: AsyncSession = Depends(get_session)):
    address = await people.get_address(db, address_id)
    if address is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    return address


@router.put("/addresses/{address_id}", response_model=AddressOut)
async def update_address(
    address_id: int, data: AddressIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    address = await people.update_address(db, address_id, data, actor.subject)
    if address is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    return address


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(address_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)):
    if not await people.delete_address(db, address_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

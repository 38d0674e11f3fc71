from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.auth.deps import Actor, get_current_actor
from tripdesk.db.session import get_session
from tripdesk.schemas.people import AffiliateIn, AffiliateOut
from tripdesk.services import people

router = APIRouter()

# url segment -> affiliate kind
KINDS = {"drivers": "driver", "agents": "referral_agent"}


def _kind(segment: str) -> str:
    kind = KINDS.get(segment)
    if kind is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown affiliate type")
    return kind


@router.get("/{segment}", response_model=List[AffiliateOut])
async def list_affiliates(
    segment: str,
    page: int = Query(0, ge=0),
    size: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
):
    return await people.list_affiliates(db, _kind(segment), page, size)


@router.post("/{segment}", response_model=AffiliateOut, status_code=status.HTTP_201_CREATED)
async def create_affiliate(
    segment: str, data: AffiliateIn, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    """Give an existing person the driver or referral agent role."""
    return await people.create_affiliate(db, _kind(segment), data.person_id, actor.subject)


@router.get("/{segment}/{affiliate_id}", response_model=AffiliateOut)
async def get_affiliate(segment: str, affiliate_id: int, db: AsyncSession = Depends(get_session)):
    affiliate = await people.get_affiliate(db, _kind(segment), affiliate_id)
    if affiliate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate not found")
    return affiliate


@router.delete("/{segment}/{affiliate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_affiliate(
    segment: str, affiliate_id: int, db: AsyncSession = Depends(get_session), actor: Actor = Depends(get_current_actor)
):
    if not await people.delete_affiliate(db, _kind(segment), affiliate_id, actor.subject):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

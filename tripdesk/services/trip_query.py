"""Filtered, paged trip listing."""
import math
from typing import List, Optional

from sqlalchemy import extract, func, or_, select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.config import settings
from tripdesk.errors import InvalidRequest
from tripdesk.models.models import Bus, Trip
from tripdesk.schemas.trip import TripPage
from tripdesk.services.trips import trip_out, trip_totals

SORT_FIELDS = {
    "id": Trip.id,
    "departure_at": Trip.departure_at,
    "arrival_at": Trip.arrival_at,
}


def sort_clauses(sort: Optional[str]) -> List:
    """``field`` or ``field,asc|desc``; id always closes the ordering."""
    if not sort:
        return [Trip.id.asc()]
    field, _, direction = sort.partition(",")
    field = field.strip()
    direction = direction.strip().lower() or "asc"
    column = SORT_FIELDS.get(field)
    if column is None:
        raise InvalidRequest(f"cannot sort trips by {field!r}")
    if direction not in ("asc", "desc"):
        raise InvalidRequest(f"unknown sort direction {direction!r}")
    primary = column.desc() if direction == "desc" else column.asc()
    if field == "id":
        return [primary]
    return [primary, Trip.id.asc()]


def trip_filters(month: Optional[int], year: Optional[int], search: Optional[str]) -> List:
    filters = []
    if month is not None:
        if not 1 <= month <= 12:
            raise InvalidRequest("month must be between 1 and 12")
        filters.append(extract("month", Trip.departure_at) == month)
    if year is not None:
        filters.append(extract("year", Trip.departure_at) == year)
    if search and search.strip():
        term = search.strip().lower()
        # EXISTS over the attached buses: a trip with two matching buses is still one row
        filters.append(
            Trip.buses.any(
                or_(
                    func.lower(Bus.plate).contains(term, autoescape=True),
                    func.lower(Bus.model).contains(term, autoescape=True),
                )
            )
        )
    return filters


async def find_trips(
    db: AsyncSession,
    month: Optional[int] = None,
    year: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 0,
    size: Optional[int] = None,
    sort: Optional[str] = None,
) -> TripPage:
    if page < 0:
        raise InvalidRequest("page must not be negative")
    size = settings.DEFAULT_PAGE_SIZE if size is None else size
    if size < 1:
        raise InvalidRequest("size must be positive")
    size = min(size, settings.MAX_PAGE_SIZE)

    filters = trip_filters(month, year, search)
    total = await db.scalar(sa_select(func.count(Trip.id)).where(*filters))
    stmt = (
        sa_select(Trip)
        .where(*filters)
        .options(selectinload(Trip.buses))
        .order_by(*sort_clauses(sort))
        .offset(page * size)
        .limit(size)
    )
    res = await db.execute(stmt)
    trips = list(res.scalars().all())
    totals = await trip_totals(db, [t.id for t in trips])
    return TripPage(
        items=[trip_out(t, totals) for t in trips],
        total=total or 0,
        page=page,
        size=size,
        pages=math.ceil((total or 0) / size),
    )

import logging
from typing import List, Optional

from sqlalchemy import select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.errors import InvalidRequest, ReferenceInUse
from tripdesk.models.models import Bus, trip_buses
from tripdesk.schemas.fleet import BusIn, BusLayoutOut, LayoutCellOut
from tripdesk.services.audit import log_audit
from tripdesk.services.layout import LayoutSeat, layout_for_bus, parse_layout

logger = logging.getLogger(__name__)


def _apply(bus: Bus, data: BusIn) -> None:
    # parsed once here, rejected with LayoutError before anything is written
    layout = parse_layout(data.layout, data.capacity)
    bus.model = data.model
    bus.plate = data.plate.strip().upper()
    bus.capacity = data.capacity
    bus.layout = layout.to_json() if layout is not None else None


async def create_bus(db: AsyncSession, data: BusIn, actor: Optional[str] = None) -> Bus:
    bus = Bus()
    _apply(bus, data)
    try:
        async with db.begin():
            db.add(bus)
            await db.flush()
            await log_audit(db, actor, "create_bus", "bus", bus.id, {"plate": bus.plate, "capacity": bus.capacity})
    except IntegrityError:
        raise InvalidRequest(f"plate {bus.plate} is already registered")
    logger.info("bus %s registered with %d seats", bus.plate, bus.capacity)
    return bus


async def update_bus(db: AsyncSession, bus_id: int, data: BusIn, actor: Optional[str] = None) -> Optional[Bus]:
    """Seats already generated for trips keep the layout they were built from."""
    try:
        async with db.begin():
            bus = await db.get(Bus, bus_id)
            if bus is None:
                return None
            _apply(bus, data)
            await db.flush()
            await log_audit(db, actor, "update_bus", "bus", bus_id, {"plate": bus.plate, "capacity": bus.capacity})
    except IntegrityError:
        raise InvalidRequest(f"plate {data.plate} is already registered")
    return bus


async def delete_bus(db: AsyncSession, bus_id: int, actor: Optional[str] = None) -> bool:
    async with db.begin():
        bus = await db.get(Bus, bus_id)
        if bus is None:
            return False
        res = await db.execute(sa_select(trip_buses.c.trip_id).where(trip_buses.c.bus_id == bus_id).limit(1))
        if res.first() is not None:
            raise ReferenceInUse(f"bus {bus_id} is assigned to trips")
        await db.delete(bus)
        await log_audit(db, actor, "delete_bus", "bus", bus_id)
    return True


async def get_bus(db: AsyncSession, bus_id: int) -> Optional[Bus]:
    return await db.get(Bus, bus_id)


async def list_buses(db: AsyncSession) -> List[Bus]:
    res = await db.execute(sa_select(Bus).order_by(Bus.id))
    return list(res.scalars().all())


def render_layout(bus: Bus) -> BusLayoutOut:
    layout = layout_for_bus(bus)
    rows = []
    for row in layout.rows:
        cells = []
        for cell in row:
            if isinstance(cell, LayoutSeat):
                cells.append(LayoutCellOut(number=cell.label, kind=cell.kind.value))
            else:
                cells.append(LayoutCellOut(number=None, kind="EMPTY"))
        rows.append(cells)
    return BusLayoutOut(bus_id=bus.id, seat_count=layout.seat_count, rows=rows)

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


class BusIn(BaseModel):
    model: Optional[str] = None
    plate: str = Field(..., min_length=1, max_length=16)
    capacity: int = Field(..., ge=0)
    # rows of cells: 0/null for a gap, a seat number, or {"number": n, "kind": "WINDOW"|"AISLE"}
    layout: Optional[List[List[Any]]] = None


class BusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model: Optional[str] = None
    plate: str
    capacity: int
    layout: Optional[List[List[Any]]] = None


class BusSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model: Optional[str] = None
    plate: str
    capacity: int


class LayoutCellOut(BaseModel):
    number: Optional[str] = None
    kind: str


class BusLayoutOut(BaseModel):
    bus_id: int
    seat_count: int
    rows: List[List[LayoutCellOut]]
